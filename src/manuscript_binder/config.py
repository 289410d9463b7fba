"""Configuration constants for manuscript-binder."""

from pathlib import Path

# Protected root items. Their ids are fixed so saved projects stay portable.
DRAFT_ROOT_ID = "root-draft"
RESEARCH_ROOT_ID = "root-research"
TRASH_ROOT_ID = "root-trash"

ROOT_TITLES: dict[str, str] = {
    DRAFT_ROOT_ID: "Draft",
    RESEARCH_ROOT_ID: "Research",
    TRASH_ROOT_ID: "Trash",
}

# Imported titles longer than this are cut and suffixed with TITLE_ELLIPSIS.
TITLE_MAX_LENGTH = 50
TITLE_ELLIPSIS = "..."

# Inserted between the contents of merged documents.
MERGE_SEPARATOR = '<br/><div class="merge-separator">***</div><br/>'

# Title given to the second half of a split when the caller has none.
DEFAULT_SPLIT_TITLE = "New Split Item"

# Cards whose y differs by less than this many pixels share a row on commit.
FREEFORM_ROW_TOLERANCE = 50.0

# Directory with project data. First directory which is found is used.
DATA_DIRECTORIES: list[Path] = [
    Path("~/.local/share/manuscript-binder").expanduser(),
    Path("~/.manuscript-binder").expanduser(),
]

PROJECT_FILENAME = "binder.json"


def resolve_data_directory() -> Path:
    """Return the first existing data directory, or the first candidate."""
    for candidate in DATA_DIRECTORIES:
        if candidate.is_dir():
            return candidate
    return DATA_DIRECTORIES[0]
