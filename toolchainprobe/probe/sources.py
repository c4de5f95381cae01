"""
Probe program templates.

Each function returns a complete translation unit that compiles (and
links) only when the probed construct is available.
"""

import re
from typing import Iterable, Optional

from ..core.exceptions import InvalidProbeArgumentError

DEFAULT_HEADERS = (
    "stdio.h",
    "sys/types.h",
    "sys/stat.h",
    "stdlib.h",
    "stddef.h",
    "memory.h",
    "string.h",
    "strings.h",
    "inttypes.h",
    "stdint.h",
    "unistd.h",
)

_QUOTED = re.compile(r'^".+"$')
_BRACKETED = re.compile(r"^<.+>$")
_NON_ALNUM = re.compile(r"[^A-Za-z0-9]+")


def normalize_header(header: str) -> str:
    """
    Spell a header as an #include operand.

    ``stdio.h`` becomes ``<stdio.h>``; ``<x.h>`` and ``"x.h"`` are kept.
    """
    if not isinstance(header, str) or not header:
        raise InvalidProbeArgumentError(f"Invalid header: {header!r}")
    if _QUOTED.match(header) or _BRACKETED.match(header):
        return header
    return f"<{header}>"


def render_headers(headers: Optional[Iterable[str]]) -> str:
    """Render #include lines for the given headers."""
    if not headers:
        return ""
    return "".join(f"#include {normalize_header(h)}\n" for h in headers)


def declared_name(symbol: str) -> str:
    """Bare identifier of a declaration probe ('foo (int)' -> 'foo')."""
    return re.sub(r" *\(.*", "", symbol, count=1, flags=re.S)


def declared_use(symbol: str) -> str:
    """
    Rewrite a call-shaped symbol into an expression usable under C++.

    ``foo(int,char *)`` becomes ``foo((int) 0, (char *) 0)`` so every
    argument is a typed null value.
    """
    return symbol.replace("(", "((", 1).replace(")", ") 0)", 1).replace(",", ") 0, (")


def declared_source(symbol: str, headers: Optional[Iterable[str]]) -> str:
    name = declared_name(symbol)
    return f"""
{render_headers(headers)}

int
main ()
{{
#ifndef {name}
#ifdef __cplusplus
  (void) {declared_use(symbol)};
#else
  (void) {name};
#endif
#endif

  ;
  return 0;
}}"""


def function_source(name: str, headers: Optional[Iterable[str]] = None) -> str:
    return f"""
/* Define {name} to an innocuous variant, in case <limits.h> declares
   {name}.  */
#define {name} innocuous_{name}
/* System header to define __stub macros and hopefully few prototypes,
   which can conflict with char {name} (); below.  */
#include <limits.h>
#undef {name}
/* Override any GCC internal prototype to avoid an error.
   Use char because int might match the return type of a GCC
   builtin and then its argument prototype would still apply.  */
#ifdef __cplusplus
extern "C"
#endif
char {name} ();
/* The GNU C library defines this for functions which it implements
   to always fail with ENOSYS.  */
#if defined __stub_{name} || defined __stub___{name}
choke me
#endif

{render_headers(headers)}

int
main ()
{{
return {name} ();
  ;
  return 0;
}}"""


def header_source(header: str) -> str:
    return f"""
{render_headers([header])}

int
main ()
{{
  return 0;
}}"""


def strerror_r_source(headers: Optional[Iterable[str]]) -> str:
    return f"""
{render_headers(headers)}

int
main ()
{{

char buf[100];
char x = *strerror_r (0, buf, sizeof buf);
char *p = strerror_r (0, buf, sizeof buf);
return !p || x;

  ;
  return 0;
}}"""


def define_name(key: str) -> str:
    """
    Turn a probe key into a macro name suffix.

    ``*`` reads as ``P`` and runs of other non-alphanumerics collapse to a
    single ``_``: ``sys/types.h`` gives ``SYS_TYPES_H``, ``_exit`` gives
    ``_EXIT``.
    """
    name = key.replace("*", "P")
    return _NON_ALNUM.sub("_", name).upper()


def header_name(key: str) -> str:
    """Drop the delimiters of a normalized header ('<sys/types.h>' -> 'sys/types.h')."""
    return key[1:-1]


def link_flag(library: str) -> str:
    """'m' -> '-lm'; entries already starting with '-' are used as-is."""
    if library.startswith("-"):
        return library
    return f"-l{library}"
