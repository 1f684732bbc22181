from dataclasses import dataclass, field
from typing import List, Optional, Union

DEFAULT_FETCH_SIZE = 10000
DEFAULT_BATCH_SIZE = 10000

SetupCommands = Union[str, List[str], None]


@dataclass(frozen=True)
class GlobalOptions:
    """Process-wide options applied once before any copy starts."""
    path_supplement: Optional[str] = None


@dataclass(frozen=True)
class DestinationConfig:
    """Connection details for the database every source is copied into."""
    url_protocol: str
    url_options: str = ""
    driver: Optional[str] = None
    output_folder: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    sql_setup_commands: SetupCommands = None
    export_batch_size: Optional[int] = None

    @property
    def batch_size(self) -> int:
        return self.export_batch_size or DEFAULT_BATCH_SIZE


@dataclass(frozen=True)
class ImportJob:
    """One table (or custom query) to copy."""
    table: str
    query: Optional[str] = None
    fetch_size: Optional[int] = None
    batch_size: Optional[int] = None

    @property
    def select_sql(self) -> str:
        return self.query or f"SELECT * FROM {self.table}"


@dataclass(frozen=True)
class PostScript:
    """A labelled statement run against the destination after the imports."""
    label: str
    sql: str


@dataclass(frozen=True)
class SourceDatabaseEntry:
    """A source database and the tables to copy out of it."""
    name: str
    url: str
    driver: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    sql_setup_commands: SetupCommands = None
    fetch_size: Optional[int] = None
    imports: List[ImportJob] = field(default_factory=list)
    post_scripts: List[PostScript] = field(default_factory=list)

    def fetch_size_for(self, job: ImportJob) -> int:
        """Fetch size for a job: its own, else this entry's, else the default."""
        return job.fetch_size or self.fetch_size or DEFAULT_FETCH_SIZE


@dataclass(frozen=True)
class PipelineConfiguration:
    """A complete job description."""
    export: DestinationConfig
    databases: List[SourceDatabaseEntry] = field(default_factory=list)
    global_options: Optional[GlobalOptions] = None

    def batch_size_for(self, job: ImportJob) -> int:
        """Insert batch size for a job: its own, else the destination's."""
        return job.batch_size or self.export.batch_size
