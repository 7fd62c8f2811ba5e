"""import 说明符定位器

不是 JavaScript 解析器：只负责在源码文本中找到 import 语句末尾的
字符串字面量。支持的形式:

  import x from 'a'            import { a, b as c } from "a"
  import * as ns from 'a'      import x, { y } from 'a'
  import 'a'                   export * from 'a'
  export { a } from 'a'        import('a')

导入子句可以跨行。注释、字符串、模板字符串和正则字面量会被整体跳过，
其中出现的 import 字样不会产生匹配。
"""

from __future__ import annotations

from pathlib import Path

from assetize.core.models import ImportMatch

_QUOTES = "'\""

# 这些标点之后的 '/' 是正则字面量而非除号
_REGEX_AFTER_PUNCT = frozenset("(,=:[!&|?{};+-*%<>~^")
_REGEX_AFTER_WORD = frozenset((
    "return", "typeof", "instanceof", "in", "of", "new", "delete",
    "void", "throw", "case", "do", "else", "yield", "await",
))

# 导入子句中出现这些关键字说明不是 import/export-from 语句
_CLAUSE_STOP_WORDS = frozenset((
    "import", "export", "const", "let", "var", "function", "class",
    "default", "async", "return", "if", "for", "while",
))


def _is_ident_start(ch: str) -> bool:
    return ch.isalpha() or ch in "_$"


def _is_ident_part(ch: str) -> bool:
    return ch.isalnum() or ch in "_$"


class ImportScanner:
    """单遍扫描一个文件的文本，收集所有 import 说明符"""

    def __init__(self, text: str, source_file: Path | None = None) -> None:
        self.text = text
        self.n = len(text)
        self.source_file = source_file

    def scan(self) -> list[ImportMatch]:
        text, n = self.text, self.n
        matches: list[ImportMatch] = []
        last_kind, last_value = "", ""
        i = 0
        while i < n:
            ch = text[i]
            if ch.isspace():
                i += 1
                continue
            if ch == "/":
                nxt = text[i + 1] if i + 1 < n else ""
                if nxt in "/*":
                    i = self._skip_comment(i)
                    continue
                if self._regex_allowed(last_kind, last_value):
                    i = self._skip_regex(i)
                    last_kind, last_value = "value", ""
                    continue
                i += 1
                last_kind, last_value = "punct", "/"
                continue
            if ch in _QUOTES:
                i = self._skip_string(i)
                last_kind, last_value = "value", ""
                continue
            if ch == "`":
                i = self._skip_template(i)
                last_kind, last_value = "value", ""
                continue
            if _is_ident_start(ch):
                j = self._read_word(i)
                word = text[i:j]
                if word in ("import", "export") and last_value != ".":
                    found = self._match_statement(word, i, j)
                    if found is not None:
                        match, end = found
                        matches.append(match)
                        i = end
                        last_kind, last_value = "value", ""
                        continue
                i = j
                last_kind, last_value = "word", word
                continue
            if ch.isdigit():
                j = i + 1
                while j < n and (_is_ident_part(text[j]) or text[j] == "."):
                    j += 1
                i = j
                last_kind, last_value = "value", ""
                continue
            i += 1
            last_kind, last_value = "punct", ch
        return matches

    # ------------------------------------------------------------------
    # import / export 语句
    # ------------------------------------------------------------------

    def _match_statement(
        self, word: str, start: int, after: int,
    ) -> tuple[ImportMatch, int] | None:
        text = self.text
        p = self._skip_trivia(after)
        if p >= self.n:
            return None
        ch = text[p]

        if word == "import":
            if ch == "(":
                q = self._skip_trivia(p + 1)
                if q < self.n and text[q] in _QUOTES:
                    found = self._literal(start, q, "dynamic")
                    if found is not None:
                        r = self._skip_trivia(found[1])
                        if r < self.n and text[r] in ",)":
                            return found
                return None
            if ch in _QUOTES:
                return self._literal(start, p, "import")
            if not (_is_ident_start(ch) or ch in "{*"):
                return None
        elif ch not in "{*":
            return None

        q = self._skip_clause(p)
        if q is None:
            return None
        return self._literal(start, q, word)

    def _skip_clause(self, p: int) -> int | None:
        """跳过导入子句，返回 from 之后引号的位置"""
        text, n = self.text, self.n
        while True:
            p = self._skip_trivia(p)
            if p >= n:
                return None
            ch = text[p]
            if ch == "{":
                p = self._skip_braces(p)
                if p < 0:
                    return None
                continue
            if ch in ",*":
                p += 1
                continue
            if _is_ident_start(ch):
                j = self._read_word(p)
                word = text[p:j]
                if word in _CLAUSE_STOP_WORDS:
                    return None
                if word == "from":
                    q = self._skip_trivia(j)
                    if q < n and text[q] in _QUOTES:
                        return q
                p = j
                continue
            return None

    def _literal(
        self, start: int, quote_pos: int, kind: str,
    ) -> tuple[ImportMatch, int] | None:
        text = self.text
        quote = text[quote_pos]
        close = text.find(quote, quote_pos + 1)
        if close < 0:
            return None
        raw = text[quote_pos + 1:close]
        if "\\" in raw or "\n" in raw:
            return None
        prelude = text[start:quote_pos + 1]
        match = ImportMatch(
            full_match_text=prelude + raw,
            prelude=prelude,
            raw_specifier=raw,
            source_file=self.source_file,
            start=quote_pos + 1,
            end=close,
            quote=quote,
            kind=kind,
        )
        return match, close + 1

    # ------------------------------------------------------------------
    # 词法跳过
    # ------------------------------------------------------------------

    @staticmethod
    def _regex_allowed(last_kind: str, last_value: str) -> bool:
        if not last_kind:
            return True
        if last_kind == "punct":
            return last_value in _REGEX_AFTER_PUNCT or last_value == "}"
        if last_kind == "word":
            return last_value in _REGEX_AFTER_WORD
        return False

    def _read_word(self, i: int) -> int:
        j = i + 1
        while j < self.n and _is_ident_part(self.text[j]):
            j += 1
        return j

    def _skip_trivia(self, i: int) -> int:
        """跳过空白和注释"""
        text, n = self.text, self.n
        while i < n:
            if text[i].isspace():
                i += 1
            elif text.startswith("//", i) or text.startswith("/*", i):
                i = self._skip_comment(i)
            else:
                break
        return i

    def _skip_comment(self, i: int) -> int:
        text = self.text
        if text.startswith("//", i):
            end = text.find("\n", i)
            return self.n if end < 0 else end + 1
        end = text.find("*/", i + 2)
        return self.n if end < 0 else end + 2

    def _skip_string(self, i: int) -> int:
        text, n = self.text, self.n
        quote = text[i]
        j = i + 1
        while j < n:
            ch = text[j]
            if ch == "\\":
                j += 2
            elif ch == quote:
                return j + 1
            elif ch == "\n":
                return j
            else:
                j += 1
        return n

    def _skip_template(self, i: int) -> int:
        text, n = self.text, self.n
        j = i + 1
        while j < n:
            ch = text[j]
            if ch == "\\":
                j += 2
            elif ch == "`":
                return j + 1
            elif ch == "$" and text.startswith("{", j + 1):
                j = self._skip_braces(j + 1)
                if j < 0:
                    return n
            else:
                j += 1
        return n

    def _skip_braces(self, i: int) -> int:
        """从 '{' 跳到匹配的 '}' 之后；未闭合返回 -1"""
        text, n = self.text, self.n
        depth = 0
        j = i
        while j < n:
            ch = text[j]
            if ch == "{":
                depth += 1
                j += 1
            elif ch == "}":
                depth -= 1
                j += 1
                if depth == 0:
                    return j
            elif ch in _QUOTES:
                j = self._skip_string(j)
            elif ch == "`":
                j = self._skip_template(j)
            elif text.startswith("//", j) or text.startswith("/*", j):
                j = self._skip_comment(j)
            else:
                j += 1
        return -1

    def _skip_regex(self, i: int) -> int:
        text, n = self.text, self.n
        j = i + 1
        in_class = False
        while j < n:
            ch = text[j]
            if ch == "\\":
                j += 2
                continue
            if ch == "\n":
                return j
            if ch == "[":
                in_class = True
            elif ch == "]":
                in_class = False
            elif ch == "/" and not in_class:
                j += 1
                while j < n and _is_ident_part(text[j]):
                    j += 1
                return j
            j += 1
        return n


def find_imports(text: str, source_file: Path | None = None) -> list[ImportMatch]:
    """返回文本中所有 import 说明符，按出现位置排序"""
    return ImportScanner(text, source_file).scan()
