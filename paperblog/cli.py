import datetime as dt
import logging
import subprocess
from typing import List, Optional

import frontmatter
import typer
import uvicorn
from rich.console import Console
from rich.table import Table

from paperblog.exceptions import PaperBlogError
from paperblog.main import configure_logging, create_app, create_preview_app
from paperblog.repos.posts_repo import FilesystemPostsRepo
from paperblog.services.content_checks import check_directory
from paperblog.services.content_parser import ContentParser
from paperblog.services.formatter import (
    OrderingYAMLHandler,
    RawTimestamp,
    format_directory,
    format_post_source,
)
from paperblog.services.posts_service import PostsService
from paperblog.services.renderer import SiteRenderer
from paperblog.services.site_builder import SiteBuilder
from paperblog.settings import Settings, settings
from paperblog.utils import make_slug

logger = logging.getLogger(__name__)

app = typer.Typer(name="paperblog", help="Build, serve and check a markdown blog.")
console = Console()

COMMIT_TYPES = ["post", "feat", "fix", "docs", "style", "refactor", "chore"]


def get_settings() -> Settings:
    """Small wrapper to allow overrides in tests."""
    return settings


def _services(current: Settings):
    repo = FilesystemPostsRepo(current.content_path)
    parser = ContentParser(current.content_path)
    return repo, parser, PostsService(repo=repo, parser=parser, settings=current)


@app.command()
def build():
    """
    Build the static site into OUTPUT_DIR.
    """
    current = get_settings()
    configure_logging(current.LOG_LEVEL)
    _repo, _parser, service = _services(current)
    builder = SiteBuilder(service, SiteRenderer(current), current)
    try:
        report = builder.build()
    except PaperBlogError as e:
        console.print(f"[bold red]Build failed:[/] {e}")
        raise typer.Exit(code=1)

    console.print(
        f"[bold green]Built {report.published} posts[/] "
        f"({len(report.files)} pages) into {current.output_path}"
    )
    if report.drafts or report.scheduled:
        console.print(f"Skipped {report.drafts} drafts and {report.scheduled} scheduled posts")


@app.command()
def dev(
    host: Optional[str] = typer.Option(None, help="Interface to bind."),
    port: Optional[int] = typer.Option(None, help="Port to listen on."),
):
    """
    Serve pages straight from the content directory.
    """
    current = get_settings()
    configure_logging(current.LOG_LEVEL)
    uvicorn.run(
        create_app(current),
        host=host or current.DEV_HOST,
        port=port or current.DEV_PORT,
        log_level=current.LOG_LEVEL.lower(),
    )


@app.command()
def preview(
    host: Optional[str] = typer.Option(None, help="Interface to bind."),
    port: Optional[int] = typer.Option(None, help="Port to listen on."),
):
    """
    Serve the last build from OUTPUT_DIR.
    """
    current = get_settings()
    configure_logging(current.LOG_LEVEL)
    if not current.output_path.is_dir():
        console.print(f"[bold red]No build found at {current.output_path}.[/] Run `paperblog build` first.")
        raise typer.Exit(code=1)
    uvicorn.run(
        create_preview_app(current.output_path),
        host=host or current.DEV_HOST,
        port=port or current.PREVIEW_PORT,
        log_level=current.LOG_LEVEL.lower(),
    )


@app.command()
def check():
    """
    Validate every post: frontmatter, timestamps, unique slugs.
    """
    current = get_settings()
    configure_logging(current.LOG_LEVEL)
    _repo, _parser, service = _services(current)
    issues = check_directory(service)
    if not issues:
        console.print("[bold green]All posts look good.[/]")
        return

    table = Table(title=f"{len(issues)} content issues")
    table.add_column("File", style="cyan")
    table.add_column("Problem")
    for issue in issues:
        table.add_row(issue.source, issue.message)
    console.print(table)
    raise typer.Exit(code=1)


@app.command("format")
def format_command(
    check_only: bool = typer.Option(
        False, "--check", help="Only report files that would change."
    ),
):
    """
    Rewrite post frontmatter in canonical key order.
    """
    current = get_settings()
    configure_logging(current.LOG_LEVEL)
    repo, parser, _service = _services(current)
    try:
        changed = format_directory(repo, parser, check=check_only)
    except PaperBlogError as e:
        console.print(f"[bold red]Format failed:[/] {e}")
        raise typer.Exit(code=1)

    verb = "would be reformatted" if check_only else "reformatted"
    for source in changed:
        console.print(f"{source} {verb}")
    console.print(f"{len(changed)} files {verb}")
    if check_only and changed:
        raise typer.Exit(code=1)


@app.command()
def new(
    title: str = typer.Argument(..., help="Title of the new post."),
    tag: List[str] = typer.Option([], "--tag", "-t", help="Tag, repeatable."),
    description: str = typer.Option("", help="Summary used in listings and SEO."),
    author: Optional[str] = typer.Option(None, help="Defaults to SITE_AUTHOR."),
):
    """
    Scaffold a draft post in the content directory.
    """
    current = get_settings()
    slug = make_slug(title)
    if not slug:
        console.print("[bold red]Title does not produce a usable slug.[/]")
        raise typer.Exit(code=1)

    path = current.content_path / f"{slug}.md"
    if path.exists():
        console.print(f"[bold red]{path} already exists.[/]")
        raise typer.Exit(code=1)

    now = dt.datetime.now(dt.timezone.utc)
    post = frontmatter.Post(
        "Write your post here.\n",
        title=title,
        author=author or current.SITE_AUTHOR or "Anonymous",
        pubDatetime=RawTimestamp(now.strftime("%Y-%m-%dT%H:%M:%SZ")),
        slug=slug,
        featured=False,
        draft=True,
        tags=tag or ["others"],
        description=description or title,
    )
    path.parent.mkdir(parents=True, exist_ok=True)
    text = frontmatter.dumps(post, handler=OrderingYAMLHandler())
    path.write_text(format_post_source(text, str(path)), encoding="utf-8")
    console.print(f"Created draft [cyan]{path}[/]")


@app.command()
def commit(
    message: Optional[str] = typer.Argument(None, help="Commit summary; prompted for when omitted."),
    commit_type: str = typer.Option("post", "--type", "-t", help="Conventional commit type."),
    scope: Optional[str] = typer.Option(None, help="Optional commit scope."),
    all_files: bool = typer.Option(
        False, "--all", "-a", help="Stage every change, not only the content directory."
    ),
):
    """
    Stage content changes and commit them with a conventional message.
    """
    current = get_settings()
    if commit_type not in COMMIT_TYPES:
        console.print(
            f"[bold red]Unknown commit type {commit_type!r}.[/] "
            f"Use one of: {', '.join(COMMIT_TYPES)}"
        )
        raise typer.Exit(code=1)

    summary = (message or typer.prompt("Summary")).strip()
    if not summary:
        console.print("[bold red]Commit summary is empty.[/]")
        raise typer.Exit(code=1)

    header = f"{commit_type}({scope}): {summary}" if scope else f"{commit_type}: {summary}"
    paths = ["--all"] if all_files else ["--", str(current.content_path)]
    try:
        subprocess.run(["git", "add", *paths], check=True)
        subprocess.run(["git", "commit", "-m", header], check=True)
    except FileNotFoundError:
        console.print("[bold red]git is not installed.[/]")
        raise typer.Exit(code=1)
    except subprocess.CalledProcessError as e:
        console.print(f"[bold red]git failed:[/] {' '.join(e.cmd)}")
        raise typer.Exit(code=e.returncode)
    console.print(f"Committed [cyan]{header}[/]")


if __name__ == "__main__":
    app()
