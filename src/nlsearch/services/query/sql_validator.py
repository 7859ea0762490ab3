import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError

# 생성 대상 저장소 dialect
DIALECT = "postgres"

# 읽기 전용: SELECT (WITH, UNION 포함)만 허용
_READ_ROOTS = (exp.Select, exp.Union, exp.Intersect, exp.Except)
# SELECT ... INTO 는 테이블을 만들므로 쓰기로 취급
_WRITE_NODES = (
    exp.Insert,
    exp.Update,
    exp.Delete,
    exp.Merge,
    exp.Drop,
    exp.Create,
    exp.Alter,
    exp.Command,
    exp.Into,
)


class StatementRejected(Exception):
    pass


def ensure_read_only(sql: str) -> None:
    """단일 SELECT 문이 아니면 StatementRejected. 실행되는 SQL 텍스트는 바꾸지 않음"""
    try:
        statements = [s for s in sqlglot.parse(sql, read=DIALECT) if s is not None]
    except SqlglotError as e:
        raise StatementRejected(f"SQL parse failed: {e}") from e

    if len(statements) != 1:
        raise StatementRejected(f"Exactly one statement is allowed (got {len(statements)}).")

    ast = statements[0]
    if isinstance(ast, exp.With):
        ast = ast.this
    if not isinstance(ast, _READ_ROOTS):
        raise StatementRejected("Only SELECT queries are allowed.")

    write = ast.find(*_WRITE_NODES)
    if write is not None:
        raise StatementRejected(f"Write operation inside query: {write.key.upper()}")
