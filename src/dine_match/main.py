"""Command-line entrypoint serving the API with uvicorn."""

import os

import uvicorn


def main() -> None:
    """Run the ASGI app."""
    uvicorn.run(
        "dine_match.api.asgi:app",
        host=os.getenv("HOST", "0.0.0.0"),  # noqa: S104
        port=int(os.getenv("PORT", "8000")),
    )


if __name__ == "__main__":
    main()
