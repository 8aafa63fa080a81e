"""Chaos exporter CLI.

Command-line options override the matching environment variables; the
ChaosEngine identity still comes from APP_UUID / CHAOSENGINE.
"""

import os
from typing import Optional

import typer
import uvicorn

app = typer.Typer(
    name="chaos-exporter",
    help="Export LitmusChaos engine results as Prometheus metrics",
    add_completion=False,
)


@app.command()
def serve(
    kubeconfig: Optional[str] = typer.Option(
        None, "--kubeconfig", envvar="KUBECONFIG", help="Path to the kubeconfig file"
    ),
    host: str = typer.Option("0.0.0.0", "--host", envvar="HOST", help="Listen address"),
    port: int = typer.Option(8080, "--port", "-p", envvar="PORT", help="Listen port"),
    log_level: str = typer.Option("INFO", "--log-level", envvar="LOG_LEVEL", help="Log level"),
) -> None:
    """Poll the ChaosEngine and serve /metrics."""
    # Settings are read when the application module is imported
    if kubeconfig:
        os.environ["KUBECONFIG"] = kubeconfig
    os.environ["LOG_LEVEL"] = log_level

    uvicorn.run(
        "chaos_exporter.main:app",
        host=host,
        port=port,
        log_level=log_level.lower(),
    )


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
