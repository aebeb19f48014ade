#!/usr/bin/env python3
"""
Generate the OpenAPI JSON specification for the Lendly request API.

The web client generates its SDK from this file, so operation ids come from
custom_generate_unique_id in lendly_api.main.

- Adds the bearer security scheme to every non-health operation
- Adds server information for each environment

Usage:
    python scripts/generate_openapi.py
    python scripts/generate_openapi.py --output custom_path.json --pretty
    python scripts/generate_openapi.py --env prod
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any

# Add src to path for imports
script_dir = Path(__file__).parent.absolute()
project_root = script_dir.parent
sys.path.insert(0, str(project_root / "src"))

from lendly_api.main import create_app  # noqa: E402
from lendly_api.settings import Settings  # noqa: E402
from lendly_api.store.memory import InMemoryRequestRepository  # noqa: E402

SERVERS = {
    "dev": [
        {"url": "https://api.dev.lendly.app", "description": "Development environment"},
        {"url": "http://localhost:8000", "description": "Local development server"},
    ],
    "prod": [{"url": "https://api.lendly.app", "description": "Production environment"}],
}

OPERATION_METHODS = ("get", "post", "put", "patch", "delete")


def add_bearer_security(openapi_spec: dict[str, Any]) -> dict[str, Any]:
    """Declare the bearer scheme and require it everywhere except the health probes."""
    openapi_spec.setdefault("components", {}).setdefault("securitySchemes", {})["bearerAuth"] = {
        "type": "http",
        "scheme": "bearer",
        "description": "Access token issued by the authentication provider",
    }

    for path, methods in openapi_spec.get("paths", {}).items():
        if "/health" in path:
            continue
        for method, operation in methods.items():
            if method.lower() in OPERATION_METHODS:
                operation["security"] = [{"bearerAuth": []}]

    return openapi_spec


def generate_openapi_spec(env: str = "dev") -> dict[str, Any]:
    """Build the app offline and return its OpenAPI document."""
    # Placeholder auth settings: building the schema never calls the provider
    settings = Settings(auth_url="https://auth.invalid", auth_api_key="unused", database_url=None)
    app = create_app(settings, repository=InMemoryRequestRepository())

    openapi_spec = app.openapi()
    openapi_spec["servers"] = SERVERS[env]
    return add_bearer_security(openapi_spec)


def main() -> None:
    """Main script entry point."""
    parser = argparse.ArgumentParser(description="Generate OpenAPI JSON for the Lendly request API")
    parser.add_argument("--output", "-o", default="openapi/openapi.json", help="Output file path")
    parser.add_argument("--env", "-e", choices=sorted(SERVERS), default="dev", help="Environment (default: dev)")
    parser.add_argument("--pretty", "-p", action="store_true", help="Pretty print JSON output")
    args = parser.parse_args()

    openapi_spec = generate_openapi_spec(args.env)

    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(openapi_spec, f, indent=2 if args.pretty else None, ensure_ascii=False)

    print(f"OpenAPI spec written to: {output_path.absolute()}")
    print(f"Endpoints: {len(openapi_spec.get('paths', {}))}")


if __name__ == "__main__":
    main()
