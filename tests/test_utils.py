from sqlalchemy.dialects import mssql, sqlite

from datatables_sql import (
    ColumnInfo,
    QueryContext,
    SearchInfo,
    SqlFragments,
    Stage,
    order_by,
    skip_take,
    translate,
    where,
)

BASE = "SELECT * FROM people"


def context_for(request, fragments):
    return QueryContext(BASE, request, fragments)


def searched_columns(name="", city=""):
    return [
        ColumnInfo(data="name", name="name", searchable=True, orderable=True, search=SearchInfo(value=name)),
        ColumnInfo(data="city", name="city", searchable=True, orderable=True, search=SearchInfo(value=city)),
    ]


def test_blank_search_appends_unconditional_where(request_factory, fragments):
    for search in ("", "   "):
        context = where(context_for(request_factory(search=search), fragments))
        assert context.query == "SELECT * FROM people WHERE 1=1"
        assert context.params == {}


def test_search_ors_searchable_columns_with_one_parameter(request_factory, fragments):
    context = where(context_for(request_factory(search="ann"), fragments))
    assert context.query == (
        "SELECT * FROM people WHERE name LIKE '%' || :search_value || '%'"
        " OR city LIKE '%' || :search_value || '%'"
    )
    assert context.params == {"search_value": "ann"}


def test_search_value_never_reaches_query_text(request_factory, fragments):
    hostile = "x'; DROP TABLE people; --"
    request = request_factory(search=hostile)
    context = where(context_for(request, fragments))
    assert hostile not in context.query
    assert "DROP" not in context.query
    assert context.params["search_value"] == hostile


def test_search_without_searchable_columns_matches_nothing(request_factory, fragments):
    request = request_factory(
        search="ann", columns=[ColumnInfo(data="name", name="name", searchable=False)]
    )
    assert where(context_for(request, fragments)).query == "SELECT * FROM people WHERE 1=0"


def test_column_search_is_ignored_by_default(request_factory, fragments):
    request = request_factory(columns=searched_columns(city="Oslo"))
    assert where(context_for(request, fragments)).query.endswith("WHERE 1=1")


def test_column_search_adds_and_predicates(request_factory, fragments):
    request = request_factory(search="ann", columns=searched_columns(city="Lisbon"))
    context = where(context_for(request, fragments), column_search=True)
    assert context.query == (
        "SELECT * FROM people WHERE (name LIKE '%' || :search_value || '%'"
        " OR city LIKE '%' || :search_value || '%')"
        " AND city LIKE '%' || :column_search_1 || '%'"
    )
    assert context.params == {"search_value": "ann", "column_search_1": "Lisbon"}


def test_column_search_alone(request_factory, fragments):
    request = request_factory(columns=searched_columns(name="Hannah"))
    context = where(context_for(request, fragments), column_search=True)
    assert context.query == "SELECT * FROM people WHERE name LIKE '%' || :column_search_0 || '%'"


def test_empty_order_sorts_by_first_column(request_factory, fragments):
    context = order_by(context_for(request_factory(), fragments))
    assert context.query == "SELECT * FROM people ORDER BY 1"


def test_order_keeps_directive_sequence(request_factory, fragments):
    request = request_factory(order=[(2, True), (0, False), (1, True)])
    context = order_by(context_for(request, fragments))
    assert context.query == "SELECT * FROM people ORDER BY age DESC, name, city DESC"


def test_order_on_invalid_index_is_recorded_and_skipped(request_factory, fragments):
    request = request_factory(order=[(9, False)])
    context = context_for(request, fragments)
    assert order_by(context) is context
    assert [record.stage for record in request.errors] == [Stage.ORDER_BY]
    assert "InvalidColumnError" in request.error


def test_undeclared_column_is_recorded_and_leaves_query_unchanged(request_factory):
    request = request_factory(search="ann")
    fragments = SqlFragments(sqlite.dialect(), allowed_columns=["name"])
    context = context_for(request, fragments)
    assert where(context) is context
    assert request.errors[0].stage is Stage.WHERE
    assert "Column is not declared: city" in request.error


def test_skip_take_clamps_start(request_factory, fragments):
    clamped = skip_take(context_for(request_factory(start=-5), fragments)).query
    assert clamped == skip_take(context_for(request_factory(start=0), fragments)).query
    assert clamped.endswith("LIMIT 10 OFFSET 0")


def test_skip_take_non_positive_length_is_unbounded(request_factory):
    fragments = SqlFragments(mssql.dialect())
    zero = skip_take(context_for(request_factory(length=0, start=30), fragments)).query
    negative = skip_take(context_for(request_factory(length=-1, start=30), fragments)).query
    assert zero == negative == "SELECT * FROM people OFFSET 30 ROWS"


def test_translate_builds_three_queries(request_factory):
    fragments = SqlFragments(mssql.dialect())
    request = request_factory(search="ann", order=[(0, False)], start=20, length=10)

    total, filtered, data = translate(BASE, request, fragments)

    assert total.query == "SELECT COUNT(*) FROM ( SELECT * FROM people ) count_derived"
    assert total.params == {}
    assert filtered.query == (
        "SELECT COUNT(*) FROM ( SELECT * FROM people WHERE name LIKE '%' + :search_value + '%'"
        " OR city LIKE '%' + :search_value + '%' ) count_derived"
    )
    assert filtered.params == {"search_value": "ann"}
    assert data.query == (
        "SELECT * FROM people WHERE name LIKE '%' + :search_value + '%'"
        " OR city LIKE '%' + :search_value + '%'"
        " ORDER BY name OFFSET 20 ROWS FETCH NEXT 10 ROWS ONLY"
    )
    assert data.params == {"search_value": "ann"}
    assert request.error == ""


def test_translate_continues_after_failed_stage(request_factory, fragments):
    request = request_factory(order=[(5, True)], length=0)
    _, _, data = translate(BASE, request, fragments)
    assert data.query == "SELECT * FROM people WHERE 1=1 LIMIT -1 OFFSET 0"
    assert len(request.errors) == 1


def test_column_identifier_falls_back_to_data(request_factory, fragments):
    request = request_factory(search="x", columns=[ColumnInfo(data="city", name="", searchable=True)])
    assert where(context_for(request, fragments)).query.endswith("WHERE city LIKE '%' || :search_value || '%'")


def test_padded_column_name_matches_declared_column(request_factory):
    request = request_factory(
        search="x", order=[(0, True)], columns=[ColumnInfo(data="name", name=" name ", searchable=True, orderable=True)]
    )
    fragments = SqlFragments(sqlite.dialect(), allowed_columns=["name"])
    _, _, data = translate(BASE, request, fragments)
    assert data.query == "SELECT * FROM people WHERE name LIKE '%' || :search_value || '%' ORDER BY name DESC LIMIT 10 OFFSET 0"
    assert request.error == ""
