#!/usr/bin/env python3
"""
JobFinder Web Application
A Flask-based web interface for searching job postings by query or resume.
"""

from flask import Flask, render_template, request
from rich.console import Console

from jobfinder.config import get_config_manager
from jobfinder.errors import CorpusLoadError, PDFExtractionError, ServiceUnavailableError
from jobfinder.matching import get_search_engine
from jobfinder.resumes import stored_upload

console = Console()
config = get_config_manager()

app = Flask(__name__)
app.config['SECRET_KEY'] = config.get('webapp', 'secret_key')
app.config['UPLOAD_FOLDER'] = config.get('uploads', 'directory')
app.config['MAX_CONTENT_LENGTH'] = int(config.get('uploads', 'max_file_size_mb')) * 1024 * 1024

NO_MATCHES_MESSAGE = "No matching jobs found."
PDF_ERROR_MESSAGE = "Error processing PDF"
SERVICE_UNAVAILABLE_MESSAGE = "Service unavailable. Please try again in a moment."
CORPUS_ERROR_MESSAGE = "Job listings are unavailable right now."


def render_results(jobs=None, query="", message=None, criteria=None):
    return render_template(
        'index.html',
        jobs=jobs or [],
        query=query,
        message=message,
        criteria=criteria.active() if criteria is not None else None
    )


@app.route('/')
def index():
    """Search form with no results"""
    return render_results()


@app.route('/search', methods=['POST'])
def search():
    """Handle the search form and render matching jobs"""
    query = request.form.get('query', '')

    try:
        response = get_search_engine().search(query)
    except ServiceUnavailableError as e:
        console.print(f"[red]Search failed: {e}[/red]")
        return render_results(query=query, message=SERVICE_UNAVAILABLE_MESSAGE)
    except CorpusLoadError as e:
        console.print(f"[red]Search failed: {e}[/red]")
        return render_results(query=query, message=CORPUS_ERROR_MESSAGE)

    message = None
    if response.query and not response.results:
        message = NO_MATCHES_MESSAGE

    return render_results(
        jobs=response.results,
        query=query,
        message=message,
        criteria=response.criteria
    )


@app.route('/upload.html')
def upload_page():
    """Resume upload form"""
    return render_template('upload.html')


@app.route('/upload-pdf', methods=['POST'])
def upload_pdf():
    """Handle an uploaded resume and render matching jobs"""
    file = request.files.get('resume')
    if file is None or file.filename == '':
        return "No file uploaded.", 400, {'Content-Type': 'text/plain; charset=utf-8'}

    try:
        with stored_upload(file, app.config['UPLOAD_FOLDER']) as path:
            response = get_search_engine().match_resume_file(path)
    except PDFExtractionError as e:
        console.print(f"[red]Error processing PDF: {e}[/red]")
        return render_results(message=PDF_ERROR_MESSAGE)
    except ServiceUnavailableError as e:
        console.print(f"[red]Resume matching failed: {e}[/red]")
        return render_results(message=SERVICE_UNAVAILABLE_MESSAGE)
    except CorpusLoadError as e:
        console.print(f"[red]Resume matching failed: {e}[/red]")
        return render_results(message=CORPUS_ERROR_MESSAGE)

    if not response.results:
        return render_results(message=NO_MATCHES_MESSAGE)

    return render_results(jobs=response.results)


def run_webapp(host=None, port=None, debug=None):
    """Index the job corpus and serve the app"""
    if host is None:
        host = config.get('webapp', 'host')
    if port is None:
        port = config.get('webapp', 'port')
    if debug is None:
        debug = config.get('webapp', 'debug')

    for issue in config.validate_config():
        console.print(f"[yellow]Config warning: {issue}[/yellow]")

    try:
        engine = get_search_engine()
    except CorpusLoadError as e:
        console.print(f"[red]Cannot start without a job corpus: {e}[/red]")
        raise SystemExit(1)

    try:
        engine.ensure_indexed()
    except ServiceUnavailableError as e:
        # Requests retry indexing lazily
        console.print(f"[yellow]Could not index job corpus at startup: {e}[/yellow]")

    console.print(f"[green]Server is running at http://localhost:{port}[/green]")
    app.run(host=host, port=port, debug=debug, threaded=True)


if __name__ == '__main__':
    run_webapp()
