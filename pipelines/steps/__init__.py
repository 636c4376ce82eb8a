# Namespace for pipeline steps
from .fetch_pages import FetchPages  # noqa: F401
from .normalize_records import NormalizeRecords  # noqa: F401
from .resolve_content import ResolveContent  # noqa: F401
from .persist_records import PersistRecords, write_records  # noqa: F401
