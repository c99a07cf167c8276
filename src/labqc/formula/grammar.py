"""Lark grammar definition for validation formulas.

A formula is a flat chain of comparisons joined by AND/OR, evaluated
strictly left to right:

    [Conductivity] > 300
    [Total Phosphorus] >= [Ortho Phosphate] * 1,2 OR [pH] < 6.5

- Variable references: [Variable Name] (any text except brackets)
- Numbers: 12, -3.5, 0,005 (comma decimal separator), 1e-3
- Comparison: >, <, >=, <=, ==, !=
- Arithmetic (one operator per side): +, -, *, /
- Logical: AND, OR (case-insensitive)

There are no parentheses, no function calls and no string literals.
"""

FORMULA_GRAMMAR = r"""
    ?start: formula

    formula: condition (logical_op condition)*

    condition: expression comparison_op expression

    expression: operand (arith_op operand)?

    ?operand: VARIABLE -> variable
        | NUMBER -> constant

    !comparison_op: ">=" | "<=" | "==" | "!=" | ">" | "<"

    !arith_op: "+" | "-" | "*" | "/"

    !logical_op: "AND"i | "OR"i

    // Variable reference: [Variable Name]
    VARIABLE: "[" /[^\[\]]+/ "]"

    // Number literal; the leading minus only lexes where an operand is expected
    NUMBER: /-?(\d+([.,]\d+)?|[.,]\d+)([eE][+-]?\d+)?/

    %import common.WS
    %ignore WS
"""

COMPARISON_OPERATORS = (">=", "<=", "==", "!=", ">", "<")
ARITHMETIC_OPERATORS = ("+", "-", "*", "/")
LOGICAL_OPERATORS = ("AND", "OR")
