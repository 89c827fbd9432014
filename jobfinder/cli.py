#!/usr/bin/env python3
"""
JobFinder CLI - command-line interface for indexing and searching job postings.
"""

import click
from rich.console import Console
from rich.table import Table

from . import __version__
from .errors import JobFinderError

console = Console()


def _results_table(title, results):
    table = Table(title=title)
    table.add_column("Rank", style="cyan", width=5)
    table.add_column("ID", style="dim")
    table.add_column("Title", style="bold")
    table.add_column("Company", style="green")
    table.add_column("Location", style="magenta")
    table.add_column("Type", style="yellow")
    table.add_column("Distance", style="blue")

    for rank, result in enumerate(results, 1):
        table.add_row(
            str(rank),
            result.id,
            result.job_title,
            result.company or "N/A",
            result.location or "N/A",
            result.job_type or "N/A",
            f"{result.score:.4f}"
        )
    return table


def _get_engine(top_k=None):
    from .matching import get_search_engine

    engine = get_search_engine()
    if top_k is not None:
        engine.top_k = top_k
    return engine


@click.group()
@click.version_option(version=__version__)
def main():
    """JobFinder - semantic job search by free-text query or resume."""
    pass


@main.command("serve")
@click.option("--host", help="Interface to bind (default from config)")
@click.option("--port", type=int, help="Port to listen on (default from config)")
@click.option("--debug/--no-debug", default=None, help="Toggle Flask debug mode (default from config)")
def serve(host, port, debug):
    """Index the job corpus and start the web interface."""
    from webapp import run_webapp

    run_webapp(host=host, port=port, debug=debug)


@main.command("index")
@click.option("--force", is_flag=True, help="Re-embed and upsert even if already indexed")
def index_jobs(force):
    """Embed the job corpus and upsert it into the vector store."""
    try:
        count = _get_engine().index_corpus(force=force)
        console.print(f"[green]✓ {count} job postings in collection[/green]")
    except JobFinderError as e:
        console.print(f"[red]Error indexing job corpus: {e}[/red]")
        raise click.Abort()


@main.command("search")
@click.argument("query")
@click.option("--top-k", type=int, help="Number of matches to return")
def search(query, top_k):
    """Search job postings with a free-text QUERY."""
    try:
        response = _get_engine(top_k).search(query)
    except JobFinderError as e:
        console.print(f"[red]Search failed: {e}[/red]")
        raise click.Abort()

    if response.criteria and not response.criteria.is_empty():
        detected = ", ".join(f"{k}={v}" for k, v in response.criteria.active().items())
        console.print(f"[dim]Detected filters: {detected}[/dim]")

    if not response.results:
        console.print("[yellow]No matching jobs found.[/yellow]")
        return

    console.print(_results_table(f"Matches for '{response.query}'", response.results))


@main.command("match-resume")
@click.argument("resume_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--top-k", type=int, help="Number of matches to return")
def match_resume(resume_path, top_k):
    """Find job postings matching the resume PDF at RESUME_PATH."""
    try:
        response = _get_engine(top_k).match_resume_file(resume_path)
    except JobFinderError as e:
        console.print(f"[red]Resume matching failed: {e}[/red]")
        raise click.Abort()

    if not response.results:
        console.print("[yellow]No matching jobs found.[/yellow]")
        return

    console.print(_results_table(f"Matches for {resume_path}", response.results))


@main.group()
def jobs():
    """Inspect the job corpus."""
    pass


@jobs.command("list")
def list_jobs():
    """List job postings with their de-duplicated ids."""
    from .jobs import get_job_corpus

    try:
        corpus = get_job_corpus()
    except JobFinderError as e:
        console.print(f"[red]Error loading job corpus: {e}[/red]")
        raise click.Abort()

    if not len(corpus):
        console.print("[yellow]No job postings found[/yellow]")
        return

    table = Table(title=f"Job Postings ({len(corpus)})")
    table.add_column("ID", style="cyan")
    table.add_column("Title", style="bold")
    table.add_column("Company", style="green")
    table.add_column("Location", style="magenta")
    table.add_column("Type", style="yellow")
    table.add_column("Salary", style="blue")

    for posting in corpus:
        table.add_row(
            posting.job_id,
            posting.job_title[:40] + "..." if len(posting.job_title) > 40 else posting.job_title,
            posting.company or "N/A",
            posting.location or "N/A",
            posting.job_type or "N/A",
            posting.salary or "N/A"
        )

    console.print(table)


@main.command("status")
def status():
    """Check connectivity to the inference API and the vector store."""
    from .inference import get_inference_client
    from .vector_store import get_vector_store

    console.print("[cyan]Checking hosted inference API...[/cyan]")
    inference_status = get_inference_client().get_status()
    if inference_status["connection"]:
        console.print(f"[green]✓ {inference_status['embedding_model']} "
                      f"({inference_status['dimensions']} dimensions)[/green]")
    else:
        console.print(f"[red]✗ Inference API: {inference_status['error']}[/red]")

    console.print("[cyan]Checking vector store...[/cyan]")
    store = get_vector_store()
    if store.heartbeat():
        try:
            count = store.count()
            console.print(f"[green]✓ Chroma at {store.host}:{store.port}, "
                          f"'{store.collection_name}' holds {count} entries[/green]")
        except JobFinderError as e:
            console.print(f"[red]✗ Collection check failed: {e}[/red]")
    else:
        console.print(f"[red]✗ Chroma at {store.host}:{store.port} unreachable[/red]")


@main.group()
def config():
    """Show and validate configuration."""
    pass


@config.command("show")
def show_config():
    """Display the effective configuration."""
    from .config import get_config_manager

    get_config_manager().display_config()


@config.command("validate")
def validate_config():
    """Report configuration problems."""
    from .config import get_config_manager

    issues = get_config_manager().validate_config()
    if not issues:
        console.print("[green]✓ Configuration is valid[/green]")
        return

    for issue in issues:
        console.print(f"[red]✗ {issue}[/red]")
    raise click.Abort()


@config.command("template")
@click.option("--output", "-o", type=click.Path(), help="Where to write the template (default .env.template)")
def env_template(output):
    """Write a .env template listing every setting."""
    from .config import get_config_manager

    if not get_config_manager().export_env_template(output):
        raise click.Abort()


if __name__ == "__main__":
    main()
