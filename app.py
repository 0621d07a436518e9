# app.py
import asyncio
import logging

import numpy as np
from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from pipeline import FilterParameters, Operation, ProcessingRequest, validate_echo_delay
from processor import EchoProcessor
from state import AppStateManager

logger = logging.getLogger(__name__)

OPERATION_ROUTES = {
    "/api/add-echo": Operation.ADD_ECHO,
    "/api/remove-echo": Operation.REMOVE_ECHO,
    "/api/process-noise-echo": Operation.PROCESS_NOISE_AND_ECHO,
}


def _parameters_payload(params: FilterParameters) -> dict:
    return {
        "echo_delay_ms": params.echo_delay_ms,
        "sample_rate": params.sample_rate,
        "echo_intensity": params.echo_intensity,
        "kalman_gain": params.kalman_gain,
        "nlms_step_size": params.nlms_step_size,
        "filter_length": params.filter_length,
        "overlap_factor": params.overlap_factor,
    }


def _parse_samples(data) -> np.ndarray:
    if not isinstance(data, dict):
        raise ValueError("Missing samples")
    samples = data.get("samples")
    if samples is None:
        raise ValueError("Missing samples")
    try:
        signal = np.asarray(samples, dtype=np.float32)
    except (TypeError, ValueError):
        raise ValueError("Samples must be a list of numbers") from None
    if signal.ndim != 1:
        raise ValueError("Samples must be a flat mono list")
    return signal


def create_app(
    processor: EchoProcessor | None = None,
    state_manager: AppStateManager | None = None,
    settings=None,
) -> FastAPI:
    proc = processor or EchoProcessor()
    sm = state_manager or AppStateManager()

    if settings is not None:
        proc.set_parameters(
            echo_delay_ms=settings.echo_delay_ms,
            sample_rate=settings.sample_rate,
        )

    app = FastAPI()

    # Store references for external access
    app.state.processor = proc
    app.state.state_manager = sm

    async def run_operation(op: Operation, signal: np.ndarray) -> dict:
        """Run one operation off the event loop and build the reply payload."""
        request = ProcessingRequest(op=op, signal=signal, params=proc.params)
        sm.job_started()
        try:
            response = await asyncio.to_thread(proc.process, request)
        except Exception:
            logger.exception("%s failed", op.value)
            sm.job_finished(failed=True)
            raise
        sm.job_finished()
        return {
            "samples": response.signal.tolist(),
            "metrics": response.metrics.to_dict(),
        }

    def set_delay(value) -> FilterParameters:
        value = validate_echo_delay(value)
        proc.set_parameters(echo_delay_ms=value)
        if settings is not None:
            settings.set_echo_delay(value)
        return proc.params

    @app.get("/api/metrics")
    async def get_metrics():
        return JSONResponse(proc.get_metrics().to_dict())

    @app.get("/api/status")
    async def get_status():
        return JSONResponse({"state": sm.state.value})

    @app.get("/api/parameters")
    async def get_parameters():
        return JSONResponse(_parameters_payload(proc.params))

    @app.post("/api/parameters")
    async def set_parameters(request: Request):
        body = await request.json()
        if not isinstance(body, dict) or "echo_delay_ms" not in body:
            return JSONResponse({"ok": False, "error": "Missing echo_delay_ms"}, status_code=400)
        try:
            params = set_delay(body["echo_delay_ms"])
        except ValueError as e:
            return JSONResponse({"ok": False, "error": str(e)}, status_code=400)
        return JSONResponse({"ok": True, **_parameters_payload(params)})

    def make_operation_endpoint(op: Operation):
        async def endpoint(request: Request):
            body = await request.json()
            try:
                signal = _parse_samples(body)
            except ValueError as e:
                return JSONResponse({"ok": False, "error": str(e)}, status_code=400)
            try:
                payload = await run_operation(op, signal)
            except Exception as e:
                return JSONResponse({"ok": False, "error": str(e)}, status_code=500)
            return JSONResponse({"ok": True, **payload})

        endpoint.__name__ = op.value
        return endpoint

    for path, op in OPERATION_ROUTES.items():
        app.post(path)(make_operation_endpoint(op))

    @app.websocket("/ws")
    async def websocket_endpoint(ws: WebSocket):
        await ws.accept()
        try:
            while True:
                data = await ws.receive_json()
                if not isinstance(data, dict):
                    await ws.send_json({"type": "error", "message": "Expected a JSON object"})
                    continue
                action = data.get("action")

                if action in {op.value for op in Operation}:
                    try:
                        signal = _parse_samples(data)
                        payload = await run_operation(Operation(action), signal)
                    except Exception as e:
                        await ws.send_json({"type": "error", "message": str(e)})
                        continue
                    await ws.send_json({"type": "result", "action": action, **payload})

                elif action == "metrics":
                    await ws.send_json({"type": "metrics", "metrics": proc.get_metrics().to_dict()})

                elif action == "set_parameters":
                    try:
                        params = set_delay(data.get("echo_delay_ms"))
                    except ValueError as e:
                        await ws.send_json({"type": "error", "message": str(e)})
                        continue
                    await ws.send_json({"type": "parameters", **_parameters_payload(params)})

                else:
                    await ws.send_json({
                        "type": "error",
                        "message": f"Unknown action: {action}",
                    })

        except WebSocketDisconnect:
            pass

    return app
