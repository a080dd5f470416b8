"""Repository for Branch records."""

from schoolhub.db.models import Branch
from schoolhub.repos.generic_repo import Repository


class BranchRepository(Repository[Branch]):
    model = Branch
    name_field = "name"
