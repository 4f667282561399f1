"""In-memory emulation of the sidecar HTTP API.

Serves the endpoints the sidecar pod client consumes:
 - GET  /check_hash/<file>   hex SHA-256 of the file in the dynamic conf volume
 - POST /copy_files          copy input files into the dynamic conf volume
 - POST /copy_monitor_conf   render fdbmonitor.conf with the substitutions
 - GET  /substitutions       JSON map of substitution variables
 - GET  /ready

Usage:
    python -m podsync.fake_sidecar --input-dir ./config --substitution FDB_ZONE_ID=z1
"""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from string import Template
from typing import Callable

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.responses import PlainTextResponse

from .client import MONITOR_CONF
from .hashing import content_digest
from .logging_config import setup_logging

logger = logging.getLogger(__name__)


@dataclass
class SidecarState:
    # Files provided by the config map.
    input_files: dict[str, str] = field(default_factory=dict)
    # Files in the shared dynamic conf volume, as seen by the main container.
    output_files: dict[str, str] = field(default_factory=dict)
    substitutions: dict[str, str] = field(default_factory=dict)
    # Number of later requests that are served before a triggered copy lands.
    copy_delay_requests: int = 0
    requests: list[tuple[str, str]] = field(default_factory=list)
    _pending: list[list] = field(default_factory=list, repr=False)

    def record(self, method: str, path: str) -> None:
        self.requests.append((method, path))

    def advance(self) -> None:
        still_pending = []
        for entry in self._pending:
            remaining, apply = entry
            if remaining <= 0:
                apply()
            else:
                entry[0] = remaining - 1
                still_pending.append(entry)
        self._pending = still_pending

    def schedule(self, apply: Callable[[], None]) -> None:
        if self.copy_delay_requests <= 0:
            apply()
        else:
            self._pending.append([self.copy_delay_requests, apply])

    def copy_files(self) -> None:
        for name, contents in self.input_files.items():
            if name != MONITOR_CONF:
                self.output_files[name] = contents

    def copy_monitor_conf(self) -> None:
        template = self.input_files[MONITOR_CONF]
        self.output_files[MONITOR_CONF] = Template(template).safe_substitute(self.substitutions)


def create_app(state: SidecarState | None = None) -> FastAPI:
    state = state or SidecarState()
    app = FastAPI(title="Fake FDB sidecar")
    app.state.sidecar = state

    @app.get("/ready", response_class=PlainTextResponse)
    def ready() -> str:
        state.record("GET", "ready")
        return "OK"

    @app.get("/check_hash/{filename:path}", response_class=PlainTextResponse)
    def check_hash(filename: str) -> str:
        state.advance()
        state.record("GET", f"check_hash/{filename}")
        contents = state.output_files.get(filename)
        if contents is None:
            raise HTTPException(status_code=404, detail="File not found")
        return content_digest(contents)

    @app.post("/copy_files", response_class=PlainTextResponse)
    def copy_files() -> str:
        state.advance()
        state.record("POST", "copy_files")
        state.schedule(state.copy_files)
        return "OK"

    @app.post("/copy_monitor_conf", response_class=PlainTextResponse)
    def copy_monitor_conf() -> str:
        state.advance()
        state.record("POST", "copy_monitor_conf")
        if MONITOR_CONF not in state.input_files:
            raise HTTPException(status_code=404, detail=f"{MONITOR_CONF} not found in input files")
        state.schedule(state.copy_monitor_conf)
        return "OK"

    @app.get("/substitutions")
    def substitutions() -> dict[str, str]:
        state.advance()
        state.record("GET", "substitutions")
        return dict(state.substitutions)

    return app


def _parse_substitution(raw: str) -> tuple[str, str]:
    if "=" not in raw:
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {raw!r}")
    key, value = raw.split("=", 1)
    return key, value


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Serve a fake sidecar API for local testing")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8080)
    p.add_argument("--input-dir", type=Path, help="Directory with the config map files")
    p.add_argument("--substitution", action="append", type=_parse_substitution, default=[], metavar="KEY=VALUE")
    p.add_argument("--copy-delay-requests", type=int, default=0)
    p.add_argument("--tls-certificate-file")
    p.add_argument("--tls-key-file")
    p.add_argument("--tls-ca-file")
    args = p.parse_args(argv)

    setup_logging("fake-sidecar")

    state = SidecarState(substitutions=dict(args.substitution), copy_delay_requests=args.copy_delay_requests)
    if args.input_dir:
        for path in sorted(args.input_dir.iterdir()):
            if path.is_file():
                state.input_files[path.name] = path.read_text(encoding="utf-8")
    logger.info("serving %d input files on %s:%d", len(state.input_files), args.host, args.port)

    uvicorn.run(
        create_app(state),
        host=args.host,
        port=args.port,
        ssl_certfile=args.tls_certificate_file,
        ssl_keyfile=args.tls_key_file,
        ssl_ca_certs=args.tls_ca_file,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
