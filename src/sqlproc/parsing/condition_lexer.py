"""Lexer for proceed conditions."""

import ply.lex as lex


class ConditionLexer:
    """Lexer for tokenizing proceed/ifvalid conditions."""

    # Word operators and literals
    reserved = {
        "eq": "STR_EQ",
        "ne": "STR_NE",
        "lt": "STR_LT",
        "le": "STR_LE",
        "gt": "STR_GT",
        "ge": "STR_GE",
        "and": "AND",
        "or": "OR",
        "not": "NOT",
        "null": "NULL",
        "undef": "NULL",
        "true": "TRUE",
        "false": "FALSE",
    }

    tokens = [
        "FLOAT",
        "INTEGER",
        "STRING",
        "WORD",
        "EQ",
        "NEQ",
        "LTE",
        "GTE",
        "LT",
        "GT",
        "LAND",
        "LOR",
        "BANG",
        "PLUS",
        "MINUS",
        "STAR",
        "SLASH",
        "PERCENT",
        "DOT",
        "LPAREN",
        "RPAREN",
    ] + sorted(set(reserved.values()))

    t_EQ = r"=="
    t_NEQ = r"!="
    t_LTE = r"<="
    t_GTE = r">="
    t_LT = r"<"
    t_GT = r">"
    t_LAND = r"&&"
    t_LOR = r"\|\|"
    t_BANG = r"!"
    t_PLUS = r"\+"
    t_MINUS = r"-"
    t_STAR = r"\*"
    t_SLASH = r"/"
    t_PERCENT = r"%"
    t_LPAREN = r"\("
    t_RPAREN = r"\)"
    t_ignore = " \t\r\n"

    def __init__(self) -> None:
        self.lexer: lex.Lexer = None  # type: ignore

    def t_FLOAT(self, t: lex.LexToken) -> lex.LexToken:
        r"\d+\.\d+"
        t.value = float(t.value)
        return t

    def t_INTEGER(self, t: lex.LexToken) -> lex.LexToken:
        r"\d+"
        t.value = int(t.value)
        return t

    def t_DOT(self, t: lex.LexToken) -> lex.LexToken:
        r"\."
        return t

    def t_STRING(self, t: lex.LexToken) -> lex.LexToken:
        r"'([^'\\]|\\.)*'|\"([^\"\\]|\\.)*\""
        t.value = _unescape(t.value[1:-1])
        return t

    def t_WORD(self, t: lex.LexToken) -> lex.LexToken:
        r"[a-zA-Z_][a-zA-Z0-9_]*"
        t.type = self.reserved.get(t.value.lower(), "WORD")
        return t

    def t_error(self, t: lex.LexToken) -> None:
        raise SyntaxError(f"Illegal character '{t.value[0]}' at position {t.lexpos}")

    # --- Lexer methods ---

    def build(self, **kwargs) -> None:  # type: ignore
        self.lexer = lex.lex(module=self, **kwargs)

    def input(self, data: str) -> None:
        self.lexer.input(data)

    def token(self) -> lex.LexToken | None:
        return self.lexer.token()

    def tokenize(self, data: str) -> list[lex.LexToken]:
        self.input(data)
        tokens = []
        while True:
            tok = self.token()
            if tok is None:
                break
            tokens.append(tok)
        return tokens


def _unescape(body: str) -> str:
    out = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\" and i + 1 < len(body):
            out.append(body[i + 1])
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def quote(value: str) -> str:
    """Render a Python string as a condition string literal."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"
