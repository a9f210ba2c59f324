"""
Mutation testing configuration for mutmut.

Mutates the tablediff package and the shared utilities; skips lines whose
mutation cannot change a diff report.
"""

SKIPPED_PREFIXES = (
    'logger.',
    'logging.',
    'run_logger.',
    'print(',
    'span.set_',
    'add_span_',
)


def pre_mutation(context):
    """
    Hook called before each mutation.

    Skips tests, package re-exports, the module entry point, and
    observability-only lines.
    """
    filename = context.filename
    if 'tests/' in filename or filename.endswith(('__init__.py', '__main__.py')):
        context.skip = True
        return

    line = context.current_source_line.strip()
    if line.startswith(SKIPPED_PREFIXES):
        context.skip = True

    # Docstrings and the help text of the CLI parser
    if '"""' in line or "help='" in line:
        context.skip = True
