import logging
import sys
from pathlib import Path

import click

from sitegen.config import get_settings
from sitegen.db import get_session_factory, init_db

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """sitegen - AI website generation and sandboxed preview"""
    ctx.ensure_object(dict)
    settings = get_settings()
    ctx.obj["settings"] = settings
    init_db(settings.database_url)
    ctx.obj["session_factory"] = get_session_factory(settings.database_url)


@cli.command(name="init-db")
@click.pass_context
def init_db_cmd(ctx: click.Context) -> None:
    """Create database tables."""
    click.echo(f"Database initialized at {ctx.obj['settings'].database_url}")


@cli.command()
@click.option("--prompt", default="", help="Free-text description of the site.")
@click.option("--conversation-id", default=None, help="Append to an existing conversation.")
@click.option("--company", default="", help="Company name.")
@click.option("--sector", default="", help="Business sector.")
@click.option("--style", default="", help="Visual style.")
@click.option("--tone", default="", help="Copy tone.")
@click.option("--page", "pages", multiple=True, help="Page/section to include (repeatable).")
@click.option("--feature", "features", multiple=True, help="Feature to include (repeatable).")
@click.option("--no-images", is_flag=True, default=False, help="Skip image generation.")
@click.option("--dry-run", is_flag=True, default=False, help="Write request payloads instead of calling providers.")
@click.pass_context
def generate(
    ctx: click.Context,
    prompt: str,
    conversation_id: str | None,
    company: str,
    sector: str,
    style: str,
    tone: str,
    pages: tuple[str, ...],
    features: tuple[str, ...],
    no_images: bool,
    dry_run: bool,
) -> None:
    """Generate a site and store it as a new version."""
    from sitegen.core.errors import AllProvidersFailed
    from sitegen.core.generator import SiteGenerator
    from sitegen.core.publisher import ArtifactPublisher
    from sitegen.models.schemas import BusinessProfile, GenerationRequest

    updates = {}
    if no_images:
        updates["generate_images"] = False
    if dry_run:
        updates["dry_run"] = True
    settings = ctx.obj["settings"].model_copy(update=updates)

    profile = None
    if any([company, sector, style, tone, pages, features]):
        profile = BusinessProfile(
            company_name=company, sector=sector, style=style, tone=tone,
            pages=list(pages), features=list(features),
        )
    if not prompt.strip() and profile is None:
        raise click.UsageError("Provide --prompt or at least one profile option.")

    publisher = None if settings.dry_run else ArtifactPublisher(ctx.obj["session_factory"], settings)
    generator = SiteGenerator(settings, publisher=publisher)
    try:
        result = generator.generate(GenerationRequest(
            prompt=prompt, profile=profile, conversation_id=conversation_id,
        ))
    except AllProvidersFailed as e:
        click.echo(f"[FAIL] {e}", err=True)
        sys.exit(1)

    click.echo(
        f"[OK] {result.conversation_id} via {result.provider} "
        f"({len(result.code)} chars, ${result.cost_usd:.4f})"
    )
    if result.publish is None:
        return
    published = result.publish.result()
    publisher.shutdown()
    if published.error:
        click.echo(f"[FAIL] publish: {published.error}", err=True)
        sys.exit(1)
    click.echo(f"  version {published.version_number} -> {published.version_id}")
    if published.media_map:
        click.echo(f"  images: {', '.join(sorted(published.media_map))}")


@cli.command()
@click.argument("identifier")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None,
              help="Write the preview document to a file instead of stdout.")
@click.pass_context
def render(ctx: click.Context, identifier: str, output: str | None) -> None:
    """Render the sandbox preview for a version id or conversation id."""
    from sitegen.core.preview import render_preview

    session = ctx.obj["session_factory"]()
    try:
        rendered = render_preview(session, identifier, ctx.obj["settings"])
    finally:
        session.close()

    if rendered is None:
        click.echo(f"[FAIL] No site found for {identifier}", err=True)
        sys.exit(1)

    if output:
        Path(output).parent.mkdir(parents=True, exist_ok=True)
        Path(output).write_text(rendered.html, encoding="utf-8")
        click.echo(
            f"[OK] {rendered.conversation_id} v{rendered.version_number} -> {output}"
        )
    else:
        click.echo(rendered.html)


@cli.command()
@click.argument("conversation_id")
@click.pass_context
def versions(ctx: click.Context, conversation_id: str) -> None:
    """List stored versions of a conversation."""
    from sitegen.core.versions import VersionStore

    session = ctx.obj["session_factory"]()
    try:
        rows = VersionStore(session).history(conversation_id)
        if not rows:
            click.echo("No versions found.")
            return
        click.echo(f"{'#':>3}  {'ID':<32}  {'MODEL':<16}  CREATED")
        click.echo("-" * 80)
        for v in rows:
            click.echo(
                f"{v.version_number:>3}  {v.id:<32}  {(v.model or '-'):<16}  "
                f"{v.created_at.strftime('%Y-%m-%d %H:%M')}"
            )
    finally:
        session.close()


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def sanitize(ctx: click.Context, path: str) -> None:
    """Run the sanitizer over a file and print the result."""
    from sitegen.core.sanitizer import sanitize as sanitize_code

    code = Path(path).read_text(encoding="utf-8")
    click.echo(sanitize_code(code, blocked_hosts=ctx.obj["settings"].blocked_hosts))


@cli.command()
@click.option("--host", default="127.0.0.1", help="Bind address.")
@click.option("--port", default=5000, type=int, help="Port.")
def serve(host: str, port: int) -> None:
    """Start the web API."""
    from sitegen.web.app import create_app

    app = create_app()
    click.echo(f"Starting sitegen on http://{host}:{port}")
    app.run(host=host, port=port, debug=False)
