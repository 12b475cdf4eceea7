"""
sievelsp Language Server.

Registers LSP capabilities and wires the document store, settings and the
rule-based handlers.
"""
from __future__ import annotations

import asyncio
import logging
import traceback
from concurrent.futures import ThreadPoolExecutor

from pygls.lsp.server import LanguageServer
from lsprotocol import types as lsp

logger = logging.getLogger(__name__)

from sievelsp import __version__
from sievelsp.document import DocumentStore, DocumentSnapshot
from sievelsp.handlers import SOURCE, get_completions, get_diagnostics, get_hover
from sievelsp.publish import PublishGate
from sievelsp.settings import Settings, SettingsError, SettingsState, parse_settings, SECTION

# ---------------------------------------------------------------------------
# Server instance + per-session state
# ---------------------------------------------------------------------------

server = LanguageServer(
    'sieve-lsp', __version__,
    text_document_sync_kind=lsp.TextDocumentSyncKind.Incremental,
)

# Open documents, keyed by URI.
_store = DocumentStore()

# Current settings, read once at the start of every validation.
_settings = SettingsState()

# Drops diagnostics computed from a snapshot older than one already published.
_gate = PublishGate()

# In-flight validation tasks (kept referenced until they finish).
_pending_tasks: set[asyncio.Task] = set()

# Thread pool running the rule engine (keeps the event loop free).
_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix='sievelsp-validate')


# ---------------------------------------------------------------------------
# Validation + publication
# ---------------------------------------------------------------------------

def _publish(snapshot: DocumentSnapshot, diags: list[lsp.Diagnostic]) -> bool:
    """Publish *diags* for *snapshot* unless a newer result was published."""
    if not _gate.admit(snapshot.uri, snapshot.sequence):
        logger.debug('_publish: dropping stale diagnostics for %s (version %s)',
                     snapshot.uri, snapshot.version)
        return False
    logger.debug('_publish: %s (version %s) → %d diagnostics',
                 snapshot.uri, snapshot.version, len(diags))
    server.text_document_publish_diagnostics(
        lsp.PublishDiagnosticsParams(uri=snapshot.uri, diagnostics=diags,
                                     version=snapshot.version)
    )
    return True


async def _run_validation(snapshot: DocumentSnapshot, settings: Settings) -> None:
    """Run the rule engine for *snapshot* in the executor, then publish."""
    loop = asyncio.get_running_loop()
    try:
        diags = await loop.run_in_executor(
            _executor, get_diagnostics, snapshot.text, settings)
        _publish(snapshot, diags)
    except Exception:
        logger.error('_run_validation: validation of %s raised:\n%s',
                     snapshot.uri, traceback.format_exc())


def _prune_gate() -> None:
    dropped = _gate.prune()
    if dropped:
        logger.debug('_prune_gate: forgot %d closed documents', dropped)


def _validation_done(task: asyncio.Task) -> None:
    _pending_tasks.discard(task)
    # nothing in flight, so no result can predate a close any more
    if not _pending_tasks:
        _prune_gate()


def _schedule_validation(uri: str) -> asyncio.Task | None:
    """Snapshot *uri* and the settings now, and validate in the background."""
    snapshot = _store.get_snapshot(uri)
    if snapshot is None:
        logger.error('_schedule_validation: document not found: %s', uri)
        return None
    settings = _settings.get()
    task = asyncio.ensure_future(_run_validation(snapshot, settings))
    _pending_tasks.add(task)
    task.add_done_callback(_validation_done)
    return task


def validate(uri: str) -> list[lsp.Diagnostic]:
    """Compute diagnostics for *uri* synchronously (empty if it is not open)."""
    snapshot = _store.get_snapshot(uri)
    if snapshot is None:
        logger.error('validate: document not found: %s', uri)
        return []
    return get_diagnostics(snapshot.text, _settings.get())


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

def _apply_log_level(raw: str | None) -> None:
    """Set the root logger level from a string like 'debug', 'warning', etc."""
    if not raw:
        return
    level = getattr(logging, str(raw).upper(), None)
    if isinstance(level, int):
        logging.getLogger().setLevel(level)


def _apply_settings(payload) -> bool:
    """Replace the settings from a client payload; keep the old ones if invalid."""
    try:
        new = parse_settings(payload)
    except SettingsError as e:
        logger.warning('Ignoring invalid settings payload: %s', e)
        return False
    _settings.set(new)
    logger.info('Updated settings: %s', new)
    return True


def _log_level_from(payload) -> str | None:
    if not isinstance(payload, dict):
        return None
    section = payload.get(SECTION, payload)
    return section.get('logLevel') if isinstance(section, dict) else None


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

@server.feature(lsp.INITIALIZE)
def on_initialize(params: lsp.InitializeParams):
    logger.info('Initializing sieve-lsp %s (root %s)', __version__, params.root_uri)
    opts = getattr(params, 'initialization_options', None)
    if opts is not None:
        _apply_settings(opts)
        _apply_log_level(_log_level_from(opts))


@server.feature(lsp.WORKSPACE_DID_CHANGE_CONFIGURATION)
def did_change_configuration(params: lsp.DidChangeConfigurationParams):
    """Replace the settings and re-validate every open document."""
    settings = getattr(params, 'settings', None)
    _apply_log_level(_log_level_from(settings))
    if not _apply_settings(settings):
        return
    for uri in _store.uris():
        _schedule_validation(uri)


# ---------------------------------------------------------------------------
# Text document synchronisation
# ---------------------------------------------------------------------------

@server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
def did_open(params: lsp.DidOpenTextDocumentParams):
    td = params.text_document
    logger.info('Document opened: %s', td.uri)
    _store.open(td.uri, td.text, td.version)
    _schedule_validation(td.uri)


@server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: lsp.DidChangeTextDocumentParams):
    uri = params.text_document.uri
    if not _store.apply_change(uri, params.content_changes, params.text_document.version):
        return
    _schedule_validation(uri)


@server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
def did_close(params: lsp.DidCloseTextDocumentParams):
    uri = params.text_document.uri
    logger.info('Document closed: %s', uri)
    sequence = _store.close(uri)
    if sequence is None:
        return
    _gate.retire(uri, sequence)
    if not _pending_tasks:
        _prune_gate()
    server.text_document_publish_diagnostics(
        lsp.PublishDiagnosticsParams(uri=uri, diagnostics=[])
    )


# ---------------------------------------------------------------------------
# Pull diagnostics
# ---------------------------------------------------------------------------

@server.feature(
    lsp.TEXT_DOCUMENT_DIAGNOSTIC,
    lsp.DiagnosticOptions(
        identifier=SOURCE,
        inter_file_dependencies=False,
        workspace_diagnostics=False,
    ),
)
def document_diagnostic(params: lsp.DocumentDiagnosticParams):
    return lsp.RelatedFullDocumentDiagnosticReport(items=validate(params.text_document.uri))


# ---------------------------------------------------------------------------
# Completion
# ---------------------------------------------------------------------------

@server.feature(
    lsp.TEXT_DOCUMENT_COMPLETION,
    lsp.CompletionOptions(trigger_characters=[':'], resolve_provider=False),
)
def completion(params: lsp.CompletionParams) -> lsp.CompletionList | None:
    uri = params.text_document.uri
    if uri not in _store:
        return None
    line = _store.get_line(uri, params.position.line)
    items = get_completions(line, params.position, _settings.get())
    return lsp.CompletionList(is_incomplete=False, items=items)


# ---------------------------------------------------------------------------
# Hover
# ---------------------------------------------------------------------------

@server.feature(lsp.TEXT_DOCUMENT_HOVER)
def hover(params: lsp.HoverParams) -> lsp.Hover | None:
    line = _store.get_line(params.text_document.uri, params.position.line)
    return get_hover(line, params.position)
