"""
Generate the OpenAPI schema of the WavePlan API.

The document can then be used to generate TypeScript types for the frontend.
"""

import json
import sys

from services.gateway_service.app.main import app


def build_schema() -> dict:
    """Return the app's OpenAPI document with the public server URL added."""
    schema = app.openapi()
    schema.setdefault("servers", [{"url": "/"}])
    return schema


if __name__ == "__main__":
    json.dump(build_schema(), sys.stdout, indent=2)
    print()
