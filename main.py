# main.py
import argparse
import logging
import sys

import uvicorn

from app import create_app
from audio_io import get_wav_duration, read_wav, write_wav
from config import SettingsManager
from pipeline import DEFAULT_ECHO_DELAY_MS
from processor import EchoProcessor

HOST = "127.0.0.1"
PORT = 8765


def start_server(app, host: str = HOST, port: int = PORT):
    uvicorn.run(app, host=host, port=port, log_level="warning")


def format_metrics(metrics) -> str:
    return (
        f"ERLE {metrics.erle:.2f} dB | SNR {metrics.snr:.2f} dB | REA {metrics.rea:.2f} dB | "
        f"latency {metrics.latency:.1f} ms | convergence {metrics.convergence:.1f} ms"
    )


def process_file(input_path: str, output_path: str, mode: str, delay_ms: float) -> int:
    """Offline demo: add echo then cancel it, or run the noise+echo path directly."""
    signal, sample_rate = read_wav(input_path)
    processor = EchoProcessor()
    try:
        processor.set_parameters(echo_delay_ms=delay_ms, sample_rate=sample_rate)
    except ValueError as e:
        print(f"Invalid parameters: {e}", file=sys.stderr)
        return 2

    if mode == "echo":
        echoed = processor.add_echo(signal)
        print(f"Added {delay_ms:g} ms echo in {processor.get_metrics().latency:.1f} ms")
        processed = processor.remove_echo(echoed)
    else:
        processed = processor.process_noise_and_echo(signal)

    write_wav(output_path, processed, sample_rate)
    print(f"Wrote {output_path} ({get_wav_duration(output_path):.2f}s @ {sample_rate} Hz)")
    print(format_metrics(processor.get_metrics()))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="echolab", description="Blind echo and noise removal.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP/WebSocket API")
    serve.add_argument("--host", default=HOST)
    serve.add_argument("--port", type=int, default=PORT)

    proc = sub.add_parser("process", help="Process a WAV file")
    proc.add_argument("input")
    proc.add_argument("output")
    proc.add_argument("--mode", choices=("echo", "noise-echo"), default="echo")
    proc.add_argument("--delay", type=float, default=DEFAULT_ECHO_DELAY_MS,
                      help="Echo delay in ms (10-500), echo mode only")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    if args.command == "serve":
        app = create_app(settings=SettingsManager())
        print(f"Serving on http://{args.host}:{args.port}")
        start_server(app, args.host, args.port)
        return 0
    return process_file(args.input, args.output, args.mode, args.delay)


if __name__ == "__main__":
    sys.exit(main())
