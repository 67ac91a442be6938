"""apply_criteria test cases: directive order, skipping and strict mode."""
import pytest
from sqlalchemy import select, text

from apps.library.models import Author, Book, Review
from repokit.config import CriteriaConfig
from repokit.criteria.scope import apply_criteria
from repokit.exceptions.handler import ConfigurationError, QueryExecutionError


def sql(statement) -> str:
    return " ".join(str(statement.compile(compile_kwargs={"literal_binds": True})).split())


class TestApplyCriteria:
    """Test applying request parameters to a statement."""

    def test_no_params_leaves_statement(self, params):
        statement = select(Book)
        result = apply_criteria(statement, Book, params())
        assert result.statement is statement
        assert result.ok
        assert result.applied == []

    def test_search_and_order(self, params):
        result = apply_criteria(select(Book), Book, params(search="hobbit", searchFields="title", orderBy="title", sortedBy="desc"))
        rendered = sql(result.statement)
        assert "books.title LIKE '%hobbit%'" in rendered
        assert rendered.endswith("ORDER BY books.title DESC")
        assert result.applied == ["search:title", "orderBy:title"]

    def test_relation_search_field_only(self, params):
        """Test searchFields=author.name searches through EXISTS and nothing else."""
        result = apply_criteria(select(Book), Book, params(search="Tolkien", searchFields="author.name"))
        rendered = sql(result.statement)
        assert "EXISTS" in rendered
        assert "authors.name = 'Tolkien'" in rendered
        assert "books.title" not in rendered.split("WHERE", 1)[1]

    def test_time_like_value_is_free_text(self, params):
        result = apply_criteria(select(Book), Book, params(search="9:00am", searchFields="title"))
        assert "books.title LIKE '%9:00am%'" in sql(result.statement)
        assert result.ok

    def test_projection_replaces_columns(self, params):
        result = apply_criteria(select(Book), Book, params(filter="id;title"))
        assert result.projected
        assert sql(result.statement).startswith("SELECT books.id, books.title FROM books")

    def test_projection_twice_is_idempotent(self, params):
        once = apply_criteria(select(Book), Book, params(filter="id;title")).statement
        twice = apply_criteria(once, Book, params(filter="id;title")).statement
        assert sql(once) == sql(twice)

    def test_with_adds_loader_options(self, params):
        result = apply_criteria(select(Book), Book, params(**{"with": "author;reviews"}))
        assert result.applied == ["with:author", "with:reviews"]
        assert len(result.statement._with_options) == 2

    def test_with_is_skipped_for_projection(self, params):
        result = apply_criteria(select(Book), Book, params(filter="id", **{"with": "author"}))
        assert [item.directive for item in result.skipped] == ["with"]

    def test_unknown_directives_are_skipped(self, params):
        result = apply_criteria(select(Book), Book, params(filter="id;nope", orderBy="publishers|name", **{"with": "publisher"}))
        assert not result.ok
        assert sorted(item.directive for item in result.skipped) == ["filter", "orderBy", "with"]
        assert result.applied == ["filter:id"]

    def test_strict_mode_raises(self, params):
        with pytest.raises(QueryExecutionError) as exc_info:
            apply_criteria(select(Book), Book, params(filter="nope"), strict=True)
        assert exc_info.value.status_code == 400
        assert exc_info.value.detail[0]["directive"] == "filter"

    def test_strict_from_config(self, params):
        config = CriteriaConfig(strict=True)
        with pytest.raises(QueryExecutionError):
            apply_criteria(select(Book), Book, params(orderBy="publishers|name"), config=config)

    def test_custom_parameter_names(self, params):
        config = CriteriaConfig(params={"search": "q", "order_by": "sort"})
        result = apply_criteria(select(Author), Author, params(q="Orwell", sort="name"), config=config)
        rendered = sql(result.statement)
        assert "authors.name LIKE '%Orwell%'" in rendered
        assert rendered.endswith("ORDER BY authors.name ASC")

    def test_non_select_is_rejected(self, params):
        with pytest.raises(ConfigurationError):
            apply_criteria(text("SELECT * FROM books"), Book, params())

    def test_non_searchable_model_is_rejected(self, params):
        with pytest.raises(ConfigurationError):
            apply_criteria(select(Review), Review, params(search="alice"))

    def test_unaccepted_search_fields_raise(self, params):
        with pytest.raises(ConfigurationError):
            apply_criteria(select(Book), Book, params(search="x", searchFields="summary"))


class TestSortValidation:
    """Test orderBy targets that name no real column are skipped."""

    def test_unknown_plain_column_is_skipped(self, params):
        result = apply_criteria(select(Book), Book, params(orderBy="bogus"))
        assert result.applied == []
        assert [(item.directive, item.value) for item in result.skipped] == [("orderBy", "bogus")]
        assert "ORDER BY" not in sql(result.statement)

    def test_unknown_plain_column_raises_in_strict_mode(self, params):
        with pytest.raises(QueryExecutionError) as exc_info:
            apply_criteria(select(Book), Book, params(orderBy="bogus"), strict=True)
        assert exc_info.value.status_code == 400

    def test_table_qualified_own_column(self, params):
        result = apply_criteria(select(Book), Book, params(orderBy="books.title"))
        assert result.applied == ["orderBy:books.title"]
        assert sql(result.statement).endswith("ORDER BY books.title ASC")

    def test_unknown_column_on_mapped_join_is_skipped(self, params):
        result = apply_criteria(select(Book), Book, params(orderBy="authors|bogus"))
        assert [item.directive for item in result.skipped] == ["orderBy"]
        assert "JOIN" not in sql(result.statement)

    def test_explicit_key_to_unmapped_table_is_skipped(self, params):
        result = apply_criteria(select(Book), Book, params(orderBy="publishers:author_id|name"))
        assert [item.value for item in result.skipped] == ["publishers|name"]
        assert "JOIN" not in sql(result.statement)


class TestRepeatedParameters:
    """Test list-valued filter, searchFields and with parameters."""

    def test_filter_list(self, params):
        result = apply_criteria(select(Book), Book, params(filter=["id", "title"]))
        assert result.applied == ["filter:id", "filter:title"]

    def test_search_fields_list(self, params):
        result = apply_criteria(select(Book), Book, params(search="x", searchFields=["title", "slug"]))
        assert result.applied == ["search:title", "search:slug"]

    def test_with_list(self, params):
        result = apply_criteria(select(Book), Book, params(**{"with": ["author", "reviews"]}))
        assert result.applied == ["with:author", "with:reviews"]
