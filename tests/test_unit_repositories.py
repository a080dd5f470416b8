"""
Unit tests for the generic repository and its entity specializations.

Tests cover:
- Name search (case-insensitive substring, blank input, literal wildcards)
- Id-based update and delete, including zero-match no-ops
- Referential helpers (get_by_branch/get_by_customer, detach_*)
- The add/search/delete lifecycle of a teacher through a transaction
"""

import uuid

import pytest

from schoolhub.core.errors import DuplicateKeyError, ReferentialViolationError
from schoolhub.db.models import Branch, Customer, Teacher


def _teacher(**overrides) -> Teacher:
    values = {"full_name": "Alice", "email": "alice@x.com", "phone": "0123456789"}
    values.update(overrides)
    return Teacher(**values)


def _customer(**overrides) -> Customer:
    values = {"full_name": "Binh Tran", "email": "binh@example.com", "phone": "0987654321"}
    values.update(overrides)
    return Customer(**values)


class TestGetByName:
    """Tests for name substring search."""

    def test_matches_substring_case_insensitively(self, teacher_repo):
        """Test that a partial, differently-cased name matches."""
        alice = teacher_repo.add(_teacher(full_name="Alice Nguyen"))
        teacher_repo.add(_teacher(full_name="Bob Le"))

        assert teacher_repo.get_by_name("ali") == [alice]
        assert teacher_repo.get_by_name("NGUY") == [alice]

    def test_no_match_returns_empty_list(self, teacher_repo):
        """Test that an unmatched name yields an empty list."""
        teacher_repo.add(_teacher())

        assert teacher_repo.get_by_name("Zed") == []

    @pytest.mark.parametrize("name", [None, ""])
    def test_empty_name_returns_empty_list(self, teacher_repo, name):
        """Test that empty input never matches everything."""
        teacher_repo.add(_teacher())

        assert teacher_repo.get_by_name(name) == []

    def test_whitespace_is_searched_as_given(self, branch_repo):
        """Test that a space matches names containing a space and nothing else."""
        spaced = branch_repo.add(Branch(name="North Campus"))
        branch_repo.add(Branch(name="Riverside"))

        assert branch_repo.get_by_name(" ") == [spaced]
        assert branch_repo.get_by_name("   ") == []

    def test_like_wildcards_match_literally(self, branch_repo):
        """Test that % and _ in the input are not treated as wildcards."""
        literal = branch_repo.add(Branch(name="100% Campus"))
        branch_repo.add(Branch(name="Main Campus"))

        assert branch_repo.get_by_name("%") == [literal]
        assert branch_repo.get_by_name("_") == []

    def test_branch_searches_name_column(self, branch_repo):
        """Test that branches are searched by name."""
        branch = branch_repo.add(Branch(name="Riverside"))

        assert branch_repo.get_by_name("river") == [branch]

    def test_customer_searches_full_name_column(self, customer_repo):
        """Test that customers are searched by full name."""
        customer = customer_repo.add(_customer(full_name="Chau Pham"))

        assert customer_repo.get_by_name("pham") == [customer]


class TestIdOperations:
    """Tests for id-based update, delete and id listing."""

    def test_get_all_ids(self, branch_repo):
        """Test that every stored id is returned."""
        first = branch_repo.add(Branch(name="North"))
        second = branch_repo.add(Branch(name="South"))

        assert branch_repo.get_all_ids() == {first.id, second.id}

    def test_get_by_id_accepts_uuid_objects(self, branch_repo):
        """Test that ids parsed from paths as UUID are converted to strings."""
        key = uuid.uuid4()
        branch = branch_repo.add(Branch(id=str(key), name="North"))

        assert branch_repo.get_by_id(key) is branch

    def test_update_by_id_replaces_values(self, branch_repo, db_session):
        """Test that update_by_id writes the replacement values."""
        branch = branch_repo.add(Branch(name="Old", phone="0123456789"))

        rows = branch_repo.update_by_id(Branch(name="New"), branch.id)
        db_session.expire_all()

        assert rows == 1
        stored = branch_repo.get_by_id(branch.id)
        assert stored.name == "New"
        assert stored.phone is None

    def test_update_unknown_id_is_noop(self, branch_repo):
        """Test that updating a missing id changes nothing."""
        assert branch_repo.update_by_id(Branch(name="New"), "missing") == 0

    def test_delete_by_id_twice(self, branch_repo):
        """Test that the second delete of the same id is a no-op."""
        branch = branch_repo.add(Branch(name="North"))
        key = branch.id

        assert branch_repo.delete_by_id(key) == 1
        assert branch_repo.delete_by_id(key) == 0
        assert branch_repo.get_by_id(key) is None

    def test_add_with_existing_id_raises_duplicate_key(self, branch_repo):
        """Test that a duplicate id is reported as DuplicateKeyError."""
        branch = branch_repo.add(Branch(name="North"))

        with pytest.raises(DuplicateKeyError):
            branch_repo.add(Branch(id=branch.id, name="South"))

    def test_add_teacher_with_unknown_customer_raises_referential_violation(self, teacher_repo):
        """Test that a dangling customer_id is rejected by storage."""
        with pytest.raises(ReferentialViolationError):
            teacher_repo.add(_teacher(customer_id="missing-customer"))

    def test_id_cannot_be_reassigned(self, branch_repo):
        """Test that an entity id is immutable once set."""
        branch = branch_repo.add(Branch(name="North"))

        with pytest.raises(ValueError, match="immutable"):
            branch.id = "another-id"


class TestReferences:
    """Tests for the referential helpers on customer and teacher repositories."""

    def test_get_by_branch(self, branch_repo, customer_repo):
        """Test that only customers of the given branch are returned."""
        north = branch_repo.add(Branch(name="North"))
        south = branch_repo.add(Branch(name="South"))
        attached = customer_repo.add(_customer(branch_id=north.id))
        customer_repo.add(_customer(full_name="Other", branch_id=south.id))

        assert customer_repo.get_by_branch(north.id) == [attached]

    def test_detach_branch_clears_references(self, branch_repo, customer_repo, db_session):
        """Test that detaching leaves customers in place without a branch."""
        north = branch_repo.add(Branch(name="North"))
        first = customer_repo.add(_customer(branch_id=north.id))
        second = customer_repo.add(_customer(full_name="Dung Vo", branch_id=north.id))

        assert customer_repo.detach_branch(north.id) == 2
        db_session.expire_all()

        assert customer_repo.get_by_id(first.id).branch_id is None
        assert customer_repo.get_by_id(second.id).branch_id is None
        assert customer_repo.get_by_branch(north.id) == []

    def test_detach_then_delete_branch(self, branch_repo, customer_repo):
        """Test that a detached branch can be deleted."""
        north = branch_repo.add(Branch(name="North"))
        customer = customer_repo.add(_customer(branch_id=north.id))

        customer_repo.detach_branch(north.id)

        assert branch_repo.delete_by_id(north.id) == 1
        assert customer_repo.get_by_id(customer.id) is not None

    def test_detach_customer_clears_teacher_references(
        self, customer_repo, teacher_repo, db_session
    ):
        """Test that detaching a customer clears customer_id on its teachers."""
        customer = customer_repo.add(_customer())
        teacher = teacher_repo.add(_teacher(customer_id=customer.id))

        assert teacher_repo.get_by_customer(customer.id) == [teacher]
        assert teacher_repo.detach_customer(customer.id) == 1
        db_session.expire_all()

        assert teacher_repo.get_by_id(teacher.id).customer_id is None

    def test_detach_with_no_references_is_noop(self, customer_repo):
        """Test that detaching an unreferenced branch returns 0."""
        assert customer_repo.detach_branch("unreferenced") == 0


class TestTeacherLifecycle:
    """End-to-end repository lifecycle through the transaction executor."""

    def test_add_find_search_delete(self, teacher_repo, executor):
        """Test that a committed teacher can be found, searched and removed."""
        teacher = _teacher()

        executor.execute_transaction(lambda: teacher_repo.add(teacher))

        fetched = teacher_repo.get_by_id(teacher.id)
        assert fetched is not None
        assert (fetched.full_name, fetched.email, fetched.phone) == (
            "Alice",
            "alice@x.com",
            "0123456789",
        )
        assert fetched.customer_id is None
        assert teacher_repo.get_by_name("Ali") == [fetched]

        executor.execute_transaction(lambda: teacher_repo.delete_by_id(teacher.id))

        assert teacher_repo.get_by_id(teacher.id) is None
        assert teacher_repo.get_all() == []
