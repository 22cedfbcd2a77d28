# Copyright (c) 2020, Intel Corporation
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
#  * Redistributions of source code must retain the above copyright notice,
#    this list of conditions and the following disclaimer.
#  * Redistributions in binary form must reproduce the above copyright
#    notice, this list of conditions and the following disclaimer in the
#    documentation and/or other materials provided with the distribution.
#  * Neither the name of Intel Corporation nor the names of its contributors
#    may be used to endorse or promote products derived from this software
#    without specific prior written permission.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
# ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT OWNER OR CONTRIBUTORS BE
# LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
# CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF
# SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS
# INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
# CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE)
# ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.

# rewrite "EXPR if COND else EXPR2" metric formulas into the ternary form
# "COND ? EXPR : EXPR2" understood by the expression evaluator
#
# simple:
#   a if b else c                  ->  b ? a : c
# inside parentheses:
#   1 - ( (a) if c else d )        ->  1 - ( c ?  (a) : d )
#
# Like a python conditional expression the then-operand extends left to
# the start of the enclosing parenthesis (or function argument) and the
# else-operand right to its end.

import re
from typing import (List, NamedTuple, Union)

from perfdefs.eventdefs import ConditionalSyntaxError

if_re = re.compile(r'\bif\b')
# perf escapes commas inside event terms, e.g. cpu@EVENT\,cmask\=1@
token_re = re.compile(r'(?P<open>\()|(?P<close>\))|(?<!\\)(?P<comma>,)|'
                      r'\b(?P<if>if)\b|\b(?P<else>else)\b')


class Token(NamedTuple):
    kind: str  # text, open, close, comma, if, else
    text: str
    start: int

    @property
    def end(self) -> int:
        return self.start + len(self.text)


class Group(NamedTuple):
    args: List  # one Node per comma separated argument
    start: int
    end: int
    kind: str = 'group'


class Conditional(NamedTuple):
    then: List
    condition: List
    otherwise: 'Node'
    start: int
    end: int


# a plain list holds Token and Group items in source order
Node = Union[List, Conditional]


def tokenize(expr: str) -> List[Token]:
    tokens = []
    pos = 0
    for m in token_re.finditer(expr):
        if m.start() > pos:
            tokens.append(Token('text', expr[pos:m.start()], pos))
        tokens.append(Token(m.lastgroup, m.group(0), m.start()))
        pos = m.end()
    if pos < len(expr):
        tokens.append(Token('text', expr[pos:], pos))
    return tokens


class Parser:

    def __init__(self, expr: str):
        self.expr = expr
        self.tokens = tokenize(expr)
        self.pos = 0

    def parse(self) -> List[Node]:
        args = self.parse_args()
        if self.pos < len(self.tokens):
            raise ConditionalSyntaxError('unbalanced parentheses', self.expr)
        return args

    def parse_args(self) -> List[Node]:
        """Parse comma separated arguments up to an unmatched ')' or the end."""
        args: List[Node] = []
        items: List = []
        while self.pos < len(self.tokens):
            token = self.tokens[self.pos]
            if token.kind == 'close':
                break
            self.pos += 1
            if token.kind == 'open':
                inner = self.parse_args()
                if self.pos == len(self.tokens):
                    raise ConditionalSyntaxError('unbalanced parentheses',
                                                 self.expr[token.start:])
                close = self.tokens[self.pos]
                self.pos += 1
                items.append(Group(inner, token.start, close.end))
            elif token.kind == 'comma':
                args.append(self.fold(items))
                items = []
            else:
                items.append(token)
        args.append(self.fold(items))
        return args

    def fragment(self, items: List) -> str:
        if not items:
            return ''
        return self.expr[items[0].start:items[-1].end]

    def fold(self, items: List) -> Node:
        """Turn the items of one argument into a Conditional if it has an if."""
        kinds = [x.kind for x in items]
        if 'if' not in kinds:
            if 'else' in kinds:
                raise ConditionalSyntaxError('else without if',
                                             self.fragment(items))
            return items
        i = kinds.index('if')
        if 'else' not in kinds[i:]:
            raise ConditionalSyntaxError('if without else',
                                         self.fragment(items))
        j = kinds.index('else', i)
        if 'if' in kinds[i + 1:j]:
            raise ConditionalSyntaxError('if inside condition',
                                         self.fragment(items))
        then, condition, rest = items[:i], items[i + 1:j], items[j + 1:]
        for operand in (then, condition, rest):
            if not self.fragment(operand).strip():
                raise ConditionalSyntaxError('empty operand in conditional',
                                             self.fragment(items))
        return Conditional(then, condition, self.fold(rest),
                           items[0].start, items[-1].end)


# A conditional that fills a whole parenthesised group is written as
# "( COND ? THEN : ELSE )". THEN keeps the whitespace that preceded it in
# the group and one space is emitted after the closing parenthesis when
# anything follows it. Existing consumers expect exactly this spacing.
PAD = None


def flatten(pieces: List) -> str:
    return ''.join(' ' if p is PAD else p for p in pieces)


class Renderer:

    def __init__(self, expr: str):
        self.expr = expr

    def items(self, items: List) -> List:
        pieces: List = []
        for x in items:
            if isinstance(x, Group):
                pieces += self.group(x)
            else:
                pieces.append(x.text)
        return pieces

    def node(self, node: Node) -> List:
        if isinstance(node, Conditional):
            return [self.conditional(node, strip_then=True)]
        return self.items(node)

    def conditional(self, c: Conditional, strip_then: bool = False) -> str:
        condition = flatten(self.items(c.condition)).strip()
        then = flatten(self.items(c.then)).rstrip()
        if strip_then:
            then = then.lstrip()
        otherwise = flatten(self.node(c.otherwise)).strip()
        return f'{condition} ? {then} : {otherwise}'

    def args(self, args: List[Node]) -> List:
        pieces: List = []
        for i, arg in enumerate(args):
            if i:
                pieces.append(',')
            if isinstance(arg, Conditional):
                text = self.expr[arg.start:arg.end]
                lead = text[:len(text) - len(text.lstrip())]
                trail = text[len(text.rstrip()):]
                pieces.append(lead + self.conditional(arg, strip_then=True) +
                              trail)
            else:
                pieces += self.items(arg)
        return pieces

    def group(self, g: Group) -> List:
        if len(g.args) == 1 and isinstance(g.args[0], Conditional):
            return ['( ' + self.conditional(g.args[0]) + ' )', PAD]
        return ['('] + self.args(g.args) + [')']

    def render(self, args: List[Node]) -> str:
        pieces = self.args(args)
        if pieces and pieces[-1] is PAD:
            pieces.pop()
        return flatten(pieces)


def transform_conditional(expr: str) -> str:
    """Rewrite python style conditionals in expr into ternary operators.

    Expressions without an "if" are returned unchanged. Raises
    ConditionalSyntaxError for an "if" without a matching "else" at the
    same parenthesis depth.
    """
    if not if_re.search(expr):
        return expr
    return Renderer(expr).render(Parser(expr).parse())
