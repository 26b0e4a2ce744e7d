# Namespace for pipeline steps
from .parse_records import ParseRecords  # noqa: F401
from .fetch_sheet import FetchSheetRecords  # noqa: F401
from .allocate_containers import AllocateContainers  # noqa: F401
from .populate_containers import PopulateContainers  # noqa: F401
