from .config import BogConfig
from .citekey import Citekey, CitekeyFormat, is_citekey, citekey_at, all_citekeys
from .errors import (
    BogError,
    CitekeyNotFoundError,
    AmbiguousSelectionError,
    InvalidCitekeyError,
    RenameConflictError,
    MissingConfigurationError,
)
from .outline import Heading, OutlineDocument, parse_outline
from .index import CitekeyIndex, orphan_report
from .query import search_query_string, search_url
from .workspace import BogWorkspace
from .logging import logger
