"""Built-in repository adapters."""
from __future__ import annotations

from arcanist.repository.base import RepositoryAPI, repository_api_registry


@repository_api_registry.register("svn")
class SubversionAPI(RepositoryAPI):
    source_control_system = "svn"
    marker = ".svn"
    binary = "svn"


@repository_api_registry.register("hg")
class MercurialAPI(RepositoryAPI):
    source_control_system = "hg"
    marker = ".hg"
    binary = "hg"


@repository_api_registry.register("git")
class GitAPI(RepositoryAPI):
    source_control_system = "git"
    marker = ".git"
    binary = "git"

    def get_branch_name(self) -> str:
        return self.execute("rev-parse", "--abbrev-ref", "HEAD").strip()
