"""Run the functions API: ``python -m vittas.api``."""

import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "vittas.api.app:create_app",
        factory=True,
        host=os.environ.get("VITTAS_API_HOST", "0.0.0.0"),
        port=int(os.environ.get("VITTAS_API_PORT", "8000")),
    )


if __name__ == "__main__":
    main()
