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

# load x86 perf event group definitions
#
# One event per line. A line ends with ',' when more events of the same
# group follow and with ';' when it is the last event of the group.
# Lines are either a bare perf event (instructions, power/energy-pkg/) or
# a record like cpu/event=0x51,umask=0x01,name='L1D.REPLACEMENT'/

import logging
import re
from pathlib import Path
from typing import (Iterable, List, NamedTuple, Optional, Set, Tuple)

from perfdefs.abbrev import abbreviate
from perfdefs.collectable import is_collectable
from perfdefs.eventdefs import (EventDefinition, FormatError, GroupDefinition,
                                Metadata, ResourceError, TargetLookupError,
                                resource_path, x86_catalog_name)
from perfdefs.uncore import expand_uncore_groups

logger = logging.getLogger(__name__)

name_field_re = re.compile(r"name='(?P<name>[^']*)'/?$")


class ParsedEvent(NamedTuple):
    kind: str  # 'bare' or 'record'
    unit: str
    params: Tuple[str, ...]
    name: str


def parse_event_line(text: str) -> ParsedEvent:
    if not text:
        raise FormatError('empty event definition', content=text)
    fields = text.split(',')
    if len(fields) == 1:
        return ParsedEvent('bare', '', (), text)
    unit, _, first = fields[0].partition('/')
    if not fields[-1].startswith('name='):
        raise FormatError('name field not found', content=text)
    m = name_field_re.match(fields[-1])
    if not m:
        raise FormatError('malformed name field', content=text)
    params = tuple(x for x in [first] + fields[1:-1] if x)
    return ParsedEvent('record', unit, params, m.group('name'))


def parse_event_definition(text: str) -> EventDefinition:
    parsed = parse_event_line(text)
    if parsed.kind == 'bare':
        return EventDefinition(text, text, '')
    return EventDefinition(text, parsed.name, parsed.unit)


def read_event_groups(lines: Iterable[str], metadata: Metadata, scope: str,
                      path: Optional[str] = None
                      ) -> Tuple[List[GroupDefinition], List[str]]:
    groups: List[GroupDefinition] = []
    uncollectable: List[str] = []
    seen: Set[str] = set()
    group: GroupDefinition = []
    for line in lines:
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        if line[-1] not in ',;':
            raise FormatError('missing group separator', path=path,
                              content=line)
        try:
            event = parse_event_definition(line[:-1])
        except FormatError as e:
            raise FormatError(e.reason, path=path, content=line) from e
        event = event._replace(name=abbreviate(event.name),
                               raw=abbreviate(event.raw))
        if is_collectable(event, metadata, scope):
            group.append(event)
        elif event.name not in seen:
            seen.add(event.name)
            uncollectable.append(event.name)
        if line.endswith(';'):
            if group:
                groups.append(group)
            else:
                logger.warning('No collectable events in group ending with %s',
                               line)
            group = []
    return expand_uncore_groups(groups, metadata), uncollectable


def open_x86_catalog(override_path: Optional[str], metadata: Metadata):
    if override_path:
        path = Path(override_path)
        if not path.is_file():
            raise ResourceError(
                f'event definition override file not found: {override_path}')
        return path
    name = x86_catalog_name(metadata, '.txt')
    path = resource_path('events', metadata.architecture, metadata.vendor,
                         name)
    if not path.is_file():
        raise TargetLookupError(
            f'no event definitions for {metadata.vendor} '
            f'{metadata.microarchitecture} ({metadata.architecture}/{name})')
    return path


def load_x86_event_groups(override_path: Optional[str], metadata: Metadata,
                          scope: str
                          ) -> Tuple[List[GroupDefinition], List[str]]:
    path = open_x86_catalog(override_path, metadata)
    try:
        text = path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise ResourceError(f'cannot read event definitions {path}: {e}') from e
    return read_event_groups(text.splitlines(), metadata, scope, str(path))
