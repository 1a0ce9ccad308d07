"""Promptea CLI: promptea command."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import click
from pydantic import ValidationError as PydanticValidationError

from promptea.api.models import PromptDocument
from promptea.cli.client import PrompteaClient
from promptea.config import get_settings
from promptea.core.refiner import DEFAULT_MODE, REFINE_MODES
from promptea.core.search import get_search_service
from promptea.errors import PrompteaError
from promptea.gateways.openai import get_http_client
from promptea.gateways.vector_store import get_vector_store

PROMPT_COLUMNS = ["id", "title", "category", "difficulty", "stars", "uses"]


def _format_table(rows: list[dict], columns: list[str]) -> str:
    """Simple table formatter."""
    if not rows:
        return "No results."
    widths = {c: len(c) for c in columns}
    for row in rows:
        for c in columns:
            widths[c] = max(widths[c], len(str(row.get(c, ""))))

    header = "  ".join(c.upper().ljust(widths[c]) for c in columns)
    separator = "  ".join("-" * widths[c] for c in columns)
    lines = [header, separator]
    for row in rows:
        lines.append("  ".join(str(row.get(c, "")).ljust(widths[c]) for c in columns))
    return "\n".join(lines)


@click.group()
@click.option("--api", default="http://localhost:3001", envvar="PROMPTEA_API", help="API base URL")
@click.option("--format", "output_format", type=click.Choice(["table", "json"]), default="table")
@click.pass_context
def cli(ctx: click.Context, api: str, output_format: str) -> None:
    """Promptea CLI: search the prompt library and manage the vector collection."""
    ctx.obj = PrompteaClient(base_url=api)
    ctx.meta["output_format"] = output_format


def _output(ctx: click.Context, data: Any, columns: list[str] | None = None) -> None:
    fmt = ctx.meta.get("output_format", "table")
    if fmt == "table" and isinstance(data, list) and columns:
        click.echo(_format_table(data, columns))
    else:
        click.echo(json.dumps(data, indent=2, default=str))


def _call(fn, *args: Any, **kwargs: Any) -> Any:
    try:
        return fn(*args, **kwargs)
    except RuntimeError as e:
        raise click.ClickException(str(e))


# --- Prompt commands ---


@cli.group()
def prompts() -> None:
    """Search and browse the prompt library."""


@prompts.command("search")
@click.argument("query", required=False, default="")
@click.option("--category", default=None)
@click.option("--tag", "tags", multiple=True, help="Repeatable; matches any of the tags")
@click.option("--difficulty", default=None)
@click.option("--featured/--not-featured", default=None)
@click.option("--contributor", default=None)
@click.option("--limit", type=int, default=20)
@click.option("--offset", type=int, default=0)
@click.option("--threshold", type=float, default=None)
@click.pass_context
def prompts_search(
    ctx: click.Context,
    query: str,
    category: str | None,
    tags: tuple[str, ...],
    difficulty: str | None,
    featured: bool | None,
    contributor: str | None,
    limit: int,
    offset: int,
    threshold: float | None,
) -> None:
    """Semantic search; without QUERY, browse by filters only."""
    client: PrompteaClient = ctx.obj
    data = _call(
        client.search,
        query,
        category=category,
        tags=list(tags) or None,
        difficulty=difficulty,
        featured=featured,
        contributor=contributor,
        limit=limit,
        offset=offset,
        threshold=threshold,
    )
    columns = PROMPT_COLUMNS + (["score"] if query.strip() else [])
    if ctx.meta.get("output_format") == "json":
        _output(ctx, data)
    else:
        _output(ctx, data.get("prompts", []), columns)


@prompts.command("featured")
@click.option("--limit", type=int, default=10)
@click.pass_context
def prompts_featured(ctx: click.Context, limit: int) -> None:
    """List featured prompts."""
    client: PrompteaClient = ctx.obj
    _output(ctx, _call(client.featured, limit=limit), PROMPT_COLUMNS)


@prompts.command("category")
@click.argument("category")
@click.option("--limit", type=int, default=20)
@click.option("--offset", type=int, default=0)
@click.pass_context
def prompts_category(ctx: click.Context, category: str, limit: int, offset: int) -> None:
    """Browse one category (``all`` for everything)."""
    client: PrompteaClient = ctx.obj
    data = _call(client.by_category, category, limit=limit, offset=offset)
    if ctx.meta.get("output_format") == "json":
        _output(ctx, data)
    else:
        _output(ctx, data.get("prompts", []), PROMPT_COLUMNS)


@prompts.command("similar")
@click.argument("prompt_id")
@click.option("--limit", type=int, default=5)
@click.pass_context
def prompts_similar(ctx: click.Context, prompt_id: str, limit: int) -> None:
    """Prompts closest to PROMPT_ID."""
    client: PrompteaClient = ctx.obj
    _output(ctx, _call(client.similar, prompt_id, limit=limit), PROMPT_COLUMNS + ["score"])


@prompts.command("stats")
@click.argument("prompt_id")
@click.argument("action", type=click.Choice(["star", "use", "copy", "view"]))
@click.pass_context
def prompts_stats(ctx: click.Context, prompt_id: str, action: str) -> None:
    """Record a star, use, copy or view on a prompt."""
    client: PrompteaClient = ctx.obj
    _output(ctx, _call(client.update_stats, prompt_id, action))


@cli.command()
@click.pass_context
def health(ctx: click.Context) -> None:
    """Check that the API is up."""
    client: PrompteaClient = ctx.obj
    _output(ctx, _call(client.health))


@cli.command()
@click.argument("prompt")
@click.option("--mode", type=click.Choice(list(REFINE_MODES)), default=DEFAULT_MODE)
@click.pass_context
def refine(ctx: click.Context, prompt: str, mode: str) -> None:
    """Rewrite PROMPT in the chosen refine mode."""
    client: PrompteaClient = ctx.obj
    data = _call(client.refine, prompt, mode=mode)
    if ctx.meta.get("output_format") == "json":
        _output(ctx, data)
    else:
        click.echo(data["refined"])


# --- Collection commands (talk to Qdrant directly) ---


@cli.group()
def collection() -> None:
    """Manage the vector store collection."""


@collection.command("init")
def collection_init() -> None:
    """Create the prompts collection and its payload indexes if missing."""
    settings = get_settings()

    async def _run() -> bool:
        store = get_vector_store()
        try:
            return await store.ensure_collection(vector_size=settings.embedding_dimensions)
        finally:
            await store.close()

    try:
        created = asyncio.run(_run())
    except PrompteaError as e:
        raise click.ClickException(str(e))
    if created:
        click.echo(f"Created collection '{settings.collection_name}'")
    else:
        click.echo(f"Collection '{settings.collection_name}' already exists")


@collection.command("info")
@click.pass_context
def collection_info(ctx: click.Context) -> None:
    """Show collection metadata via the API."""
    client: PrompteaClient = ctx.obj
    _output(ctx, _call(client.collection_info))


@cli.command()
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
def index(file_path: str) -> None:
    """Embed and upsert prompt documents from a JSON file (object or list)."""
    with open(file_path) as f:
        documents = json.load(f)
    if isinstance(documents, dict):
        documents = [documents]
    try:
        documents = [
            PromptDocument.model_validate(doc).model_dump(by_alias=True, exclude_none=True)
            for doc in documents
        ]
    except PydanticValidationError as e:
        raise click.ClickException(f"Invalid prompt document: {e}")

    async def _run() -> list[str]:
        service = get_search_service()
        try:
            return [await service.index_prompt(doc) for doc in documents]
        finally:
            await service.store.close()
            await get_http_client().aclose()

    try:
        ids = asyncio.run(_run())
    except PrompteaError as e:
        raise click.ClickException(str(e))
    for prompt_id in ids:
        click.echo(prompt_id)
    click.echo(f"Indexed {len(ids)} prompt(s)")


# --- Server ---


@cli.command()
@click.option("--host", default="0.0.0.0")
@click.option("--port", type=int, default=None, help="Defaults to PORT (3001)")
@click.option("--reload", is_flag=True, default=False)
def serve(host: str, port: int | None, reload: bool) -> None:
    """Run the API server with uvicorn."""
    import uvicorn

    uvicorn.run(
        "promptea.main:app",
        host=host,
        port=port or get_settings().port,
        reload=reload,
    )


if __name__ == "__main__":
    cli()
