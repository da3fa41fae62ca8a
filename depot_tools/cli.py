"""Command-line interface for the depot tools."""

from __future__ import annotations

import json
from contextlib import closing
from pathlib import Path

import typer

from .config import load_config
from .logging import configure_logging, get_logger
from .patterns import extract_mil_prf_codes, extract_part_numbers, extract_tire_sizes
from .proximity import extract_wheel_card
from .runtime import build_runtime

logger = get_logger(__name__)

app = typer.Typer(add_completion=False, help="SDS section extraction and wheel part-number lookup")


def _echo_json(payload: dict) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise typer.BadParameter(f"Cannot read {path}: {exc}") from exc


@app.command("sections")
def sections_command(
    source: str = typer.Argument(..., help="Local PDF path or http(s) URL"),
    details: bool = typer.Option(False, "--details", help="Include how and where each section was found"),
) -> None:
    """Print Section 7 and Section 14 of a safety data sheet."""
    runtime = build_runtime()
    with closing(runtime):
        if source.startswith(("http://", "https://")):
            result = runtime.service.extract_sections(source)
        else:
            path = Path(source)
            if not path.is_file():
                raise typer.BadParameter(f"No such file: {source}")
            result = runtime.service.extract_sections_from_bytes(path.read_bytes())
        payload = result.as_dict()
        if details:
            payload["details"] = [
                {
                    "section": section.section_number,
                    "method": section.method.value,
                    "startOffset": section.start_offset,
                    "endOffset": section.end_offset,
                }
                for section in result.details
            ]
        _echo_json(payload)


@app.command("wheels")
def wheels_command(
    textfile: Path = typer.Argument(..., help="Text file with scraped wheel/tire data"),
) -> None:
    """Resolve NLG/MLG wheel and tire part numbers from a text file."""
    cfg = load_config()
    configure_logging(cfg.log_level)
    card = extract_wheel_card(_read_text(textfile), cfg.proximity)
    _echo_json(card.as_dict())


@app.command("codes")
def codes_command(
    textfile: Path = typer.Argument(..., help="Text file to scan"),
) -> None:
    """List MIL-PRF codes, part numbers and tire sizes found in a text file."""
    text = _read_text(textfile)
    _echo_json({
        "milPrf": extract_mil_prf_codes(text),
        "partNumbers": extract_part_numbers(text),
        "tireSizes": extract_tire_sizes(text),
    })


@app.command("search")
def search_command(
    query: str = typer.Argument(..., help="Product name or MIL-PRF code"),
) -> None:
    runtime = build_runtime()
    with closing(runtime):
        _echo_json(runtime.service.search(query))


@app.command("lookup-wheels")
def lookup_wheels_command(
    tail: str = typer.Argument(..., help="Aircraft registration, e.g. TC-JHK"),
) -> None:
    runtime = build_runtime()
    with closing(runtime):
        _echo_json(runtime.service.lookup_wheels(tail))


@app.command("service")
def service_command(
    host: str = typer.Option("0.0.0.0", "--host", help="Service bind host"),
    port: int = typer.Option(8000, "--port", help="Service port"),
) -> None:
    import uvicorn

    uvicorn.run(
        "depot_tools.app:create_app",
        host=host,
        port=port,
        factory=True,
        log_level="info",
    )


def main():
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
