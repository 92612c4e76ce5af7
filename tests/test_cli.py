"""Tests for the explain console script."""

import json

from typer.testing import CliRunner

from namerec.viewset.scripts.explain_query import app

runner = CliRunner()


def test_explain_plan() -> None:
    """Filter, ordering and pagination are printed as JSON."""
    result = runner.invoke(app, ['age=>=18&sort=-name&page=2', '-f', 'age', '-f', 'name', '--page-size', '10'])
    assert result.exit_code == 0
    output = json.loads(result.stdout)
    assert output['filter'] == {'$and': [{'age': {'$gte': 18}}]}
    assert output['sort'] == ['-name']
    assert output['pagination'] == {'enabled': True, 'page': 2, 'size': 10, 'limit': 10, 'offset': 10}


def test_explain_without_page() -> None:
    """Without a page parameter nothing is paginated in auto mode."""
    result = runner.invoke(app, ['name=bob', '-f', 'name'])
    assert result.exit_code == 0
    output = json.loads(result.stdout)
    assert output['pagination']['enabled'] is False
    assert output['pagination']['limit'] is None


def test_explain_sql() -> None:
    """--sql appends the compiled SELECT."""
    result = runner.invoke(
        app,
        ['or=(age=<18|name=~a%25)', '-f', 'age', '-f', 'name', '-t', 'users', '--sql'],
    )
    assert result.exit_code == 0
    assert 'FROM users' in result.stdout
    assert "users.name LIKE 'a%" in result.stdout
    assert 'users.age < 18' in result.stdout


def test_explain_rejects_unknown_field() -> None:
    """Query errors exit with status 1."""
    result = runner.invoke(app, ['password=x', '-f', 'name'])
    assert result.exit_code == 1
    assert 'Unknown filter field: password' in result.output


def test_explain_rejects_unknown_dialect() -> None:
    """Only known dialects are accepted."""
    result = runner.invoke(app, ['name=bob', '-f', 'name', '--dialect', 'oracle'])
    assert result.exit_code == 1


def test_explain_rejects_repeated_sort() -> None:
    """Sort, page and size may be given once."""
    result = runner.invoke(app, ['sort=name&sort=-age', '-f', 'name', '-f', 'age'])
    assert result.exit_code == 1
    assert 'may appear only once' in result.output
    assert 'field: sort' in result.output
