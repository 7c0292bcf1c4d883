from .discovery import discover, run_discovery
from .matrix import build_matrix, write_matrix
from .model import JobEntry, JobMatrix, TestListRecord

__all__ = ["discover", "run_discovery", "build_matrix", "write_matrix", "JobEntry", "JobMatrix", "TestListRecord"]
