from __future__ import annotations

import argparse

import uvicorn

SERVICES = {
    "gateway": ("huequitas.main:create_gateway_app", 8000),
    "auth": ("huequitas.main:create_auth_app", 8001),
    "core": ("huequitas.main:create_core_app", 8002),
    "chat": ("huequitas.main:create_chat_app", 8003),
}


def main() -> int:
    parser = argparse.ArgumentParser(description="Run one Huequitas service")
    parser.add_argument("service", choices=sorted(SERVICES))
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=None)
    parser.add_argument("--reload", action="store_true")
    args = parser.parse_args()

    target, default_port = SERVICES[args.service]
    uvicorn.run(target, factory=True, host=args.host, port=args.port or default_port, reload=args.reload)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
