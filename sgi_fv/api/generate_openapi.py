import json
import os

from sgi_fv.api.main import app


def build_openapi_schema() -> dict:
    """OpenAPI document of the service (all REST routes are under /api/v1)."""
    openapi_schema = app.openapi()

    # Document the bearer token source; tokens come from the hosted auth service
    openapi_schema.setdefault("info", {})["x-auth"] = {
        "type": "bearer",
        "issuer": "Supabase auth (GoTrue)",
        "login": "/api/v1/auth/login",
    }
    return openapi_schema


def main(output_dir: str = "interfaces") -> str:
    os.makedirs(output_dir, exist_ok=True)
    output_path = os.path.join(output_dir, "openapi.json")
    with open(output_path, "w") as f:
        json.dump(build_openapi_schema(), f, indent=2)
    return output_path


if __name__ == "__main__":
    main()
