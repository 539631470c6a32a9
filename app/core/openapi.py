"""OpenAPI metadata and customization utilities.

Enriches the generated OpenAPI schema with:
- Tags metadata for the form, submission-limit and health groups
- An explicit warning on the unauthenticated submission-limit operations

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

ADMIN_WARNING = (
    "Operational endpoint without authentication. Expose only on trusted networks."
)


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and admin warnings."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {
                "name": "Forms",
                "description": "Career and contact form submissions relayed by email.",
            },
            {
                "name": "Submission Limits",
                "description": f"Inspect and reset per-email submission counts. {ADMIN_WARNING}",
            },
            {
                "name": "Health",
                "description": "Liveness check.",
            },
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for methods in schema.get("paths", {}).values():
            for method_obj in methods.values():
                if isinstance(method_obj, dict) and "Submission Limits" in method_obj.get("tags", []):
                    method_obj["x-authentication"] = "none"
                    description = method_obj.get("description", "")
                    method_obj["description"] = f"{description}\n\n{ADMIN_WARNING}".strip()

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
