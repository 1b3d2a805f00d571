from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import and_
from sqlalchemy.sql.elements import ColumnElement

# operator name -> builder of a bound-parameter comparison
OPERATORS: Dict[str, Callable[[Any, Any], ColumnElement]] = {
    "eq": lambda column, value: column == value,
}


@dataclass(frozen=True)
class Clause:
    """A single `column <operator> value` condition"""
    column: Any
    operator: str
    value: Any

    def compile(self) -> ColumnElement:
        try:
            build = OPERATORS[self.operator]
        except KeyError:
            raise ValueError(f"Unsupported operator: {self.operator}") from None
        return build(self.column, self.value)


class PredicateBuilder:
    """Ordered list of clauses combined with AND

    Values always travel as bound parameters; nothing is rendered into the
    SQL text.
    """

    def __init__(self):
        self.clauses: List[Clause] = []

    def add(self, column, op: str, value) -> "PredicateBuilder":
        if op not in OPERATORS:
            raise ValueError(f"Unsupported operator: {op}")
        self.clauses.append(Clause(column, op, value))
        return self

    def add_if(self, value, column, op: str = "eq") -> "PredicateBuilder":
        """Add the clause only when a filter value was supplied"""
        if value is not None:
            self.add(column, op, value)
        return self

    def compile(self) -> Optional[ColumnElement]:
        if not self.clauses:
            return None
        return and_(*(clause.compile() for clause in self.clauses))

    def __len__(self) -> int:
        return len(self.clauses)
