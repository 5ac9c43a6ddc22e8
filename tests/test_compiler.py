"""Tests for compiling score statements into a catalog."""

from pathlib import Path
from uuid import UUID

import pytest

from conductor.catalog import (
    AuthenticationPolicy,
    AuthorizationPolicy,
    Catalog,
    Column,
    DataType,
    HttpHandler,
    Table,
)
from conductor.score import CompileError, ScoreCompiler, ScoreFile, compile_files, parse

ORDERS = UUID("0b0c5a55-6d2f-4c8e-8a0f-3f3c8f2d9a01")
CUSTOMERS = UUID("0b0c5a55-6d2f-4c8e-8a0f-3f3c8f2d9a02")


def score_file(text, name="main.score"):
    return ScoreFile(path=Path(name), statements=parse(text))


def test_compile_empty_unit():
    assert compile_files([]) == Catalog()


def test_compile_single_file():
    catalog = ScoreCompiler().compile(
        [
            score_file(
                f"""
                NAMESPACE shop;
                TABLE orders UUID '{ORDERS}' (id BIGINT UID 1, total DOUBLE UID 2);
                HTTP_HANDLER recent POLICY everyone AS $$SELECT * FROM orders$$;
                AUTHENTICATION_POLICY anon TYPE = anonymous;
                AUTHORIZATION_POLICY everyone permissive_expr = TRUE;
                """
            )
        ]
    )

    namespace = catalog.get_namespace("shop")
    assert list(catalog.namespaces) == ["shop"]
    assert namespace.tables == {
        "orders": Table(
            namespace="shop",
            uuid=ORDERS,
            name="orders",
            columns=[
                Column(uid=1, name="id", data_type=DataType.BIGINT),
                Column(uid=2, name="total", data_type=DataType.DOUBLE),
            ],
        )
    }
    assert namespace.http_handlers["recent"] == HttpHandler(
        namespace="shop", name="recent", body="SELECT * FROM orders", policy="everyone"
    )
    assert namespace.authentication_policies["anon"] == AuthenticationPolicy(
        namespace="shop", name="anon"
    )
    assert namespace.authorization_policies["everyone"] == AuthorizationPolicy(
        namespace="shop", name="everyone", permissive_expr="TRUE"
    )
    catalog.validate()


def test_compile_merges_files_of_one_namespace():
    """Handlers may use policies declared in another file of the unit."""
    catalog = compile_files(
        [
            score_file(
                "NAMESPACE shop; HTTP_HANDLER h POLICY p AS $$SELECT 1$$",
                "a.score",
            ),
            score_file(
                f"NAMESPACE shop; TABLE orders UUID '{ORDERS}';"
                "AUTHORIZATION_POLICY p permissive_expr = TRUE",
                "b.score",
            ),
        ]
    )
    namespace = catalog.get_namespace("shop")
    assert set(namespace.tables) == {"orders"}
    assert set(namespace.http_handlers) == {"h"}
    assert set(namespace.authorization_policies) == {"p"}


def test_conflicting_namespaces():
    with pytest.raises(CompileError) as exc_info:
        compile_files(
            [
                score_file("NAMESPACE shop", "a.score"),
                score_file("NAMESPACE billing", "b.score"),
            ]
        )
    assert str(exc_info.value) == (
        "compile error: conflicting namespace declaration billing and shop "
        "in the same package in b.score"
    )
    assert exc_info.value.path == Path("b.score")


def test_conflicting_table_names():
    with pytest.raises(CompileError, match="conflicting table declaration: orders"):
        compile_files(
            [
                score_file(
                    f"NAMESPACE shop; TABLE orders UUID '{ORDERS}';"
                    f"TABLE orders UUID '{CUSTOMERS}'"
                )
            ]
        )


def test_conflicting_table_uuids():
    """Two tables may not share a uuid even under different names."""
    with pytest.raises(CompileError, match="conflicting table declaration: customers"):
        compile_files(
            [
                score_file("NAMESPACE shop", "a.score"),
                score_file(f"NAMESPACE shop; TABLE orders UUID '{ORDERS}'", "b.score"),
                score_file(f"NAMESPACE shop; TABLE customers UUID '{ORDERS}'", "c.score"),
            ]
        )


def test_conflicting_column_names():
    with pytest.raises(CompileError, match="conflicting column declaration id 2"):
        compile_files(
            [
                score_file(
                    f"NAMESPACE shop; TABLE orders UUID '{ORDERS}' "
                    "(id INTEGER UID 1, id TEXT UID 2)"
                )
            ]
        )


def test_conflicting_column_uids():
    with pytest.raises(CompileError, match="conflicting column declaration total 1"):
        compile_files(
            [
                score_file(
                    f"NAMESPACE shop; TABLE orders UUID '{ORDERS}' "
                    "(id INTEGER UID 1, total DOUBLE UID 1)"
                )
            ]
        )


def test_column_uids_are_scoped_to_their_table():
    catalog = compile_files(
        [
            score_file(
                f"NAMESPACE shop; TABLE orders UUID '{ORDERS}' (id INTEGER UID 1);"
                f"TABLE customers UUID '{CUSTOMERS}' (id INTEGER UID 1)"
            )
        ]
    )
    assert len(catalog.get_namespace("shop").tables) == 2


@pytest.mark.parametrize(
    "statement,kind",
    [
        ("HTTP_HANDLER h POLICY p AS $$SELECT 1$$", "http handler"),
        ("AUTHENTICATION_POLICY p TYPE = anonymous", "authentication policy"),
        ("AUTHORIZATION_POLICY p permissive_expr = TRUE", "authorization policy"),
    ],
)
def test_conflicting_named_entities(statement, kind):
    text = (
        "NAMESPACE shop; AUTHORIZATION_POLICY p0 permissive_expr = TRUE;"
        f"{statement}; {statement}"
    ).replace("POLICY p AS", "POLICY p0 AS")
    with pytest.raises(CompileError, match=f"conflicting {kind} declaration"):
        compile_files([score_file(text)])


def test_handler_with_unknown_policy():
    with pytest.raises(CompileError) as exc_info:
        compile_files(
            [score_file("NAMESPACE shop; HTTP_HANDLER h POLICY nobody AS $$SELECT 1$$")]
        )
    assert "references unknown authorization policy nobody" in str(exc_info.value)


def test_file_without_namespace_declaration():
    with pytest.raises(CompileError, match="expected namespace declaration"):
        compile_files([ScoreFile(path=Path("x.score"), statements=[])])
