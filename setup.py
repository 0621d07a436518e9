"""
setuptools build script for EchoLab.

Usage:
    pip install -e .            # Development install
    pip install -e .[test]      # With test dependencies
    echolab process in.wav out.wav --mode echo --delay 100
    echolab serve --port 8765
"""
from setuptools import setup

MODULES = [
    'main', 'app', 'processor', 'pipeline', 'aec', 'denoise',
    'echo', 'emphasis', 'metrics', 'audio_io', 'config', 'state',
]

setup(
    name='echolab',
    version='1.0.0',
    description='Blind NLMS echo cancellation and Kalman denoising for mono audio',
    py_modules=MODULES,
    python_requires='>=3.10',
    install_requires=[
        'numpy',
        'scipy',
        'fastapi',
        'uvicorn',
    ],
    extras_require={
        'test': ['pytest', 'httpx'],
    },
    entry_points={
        'console_scripts': ['echolab=main:main'],
    },
)
