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

# shared definitions for event and metric catalog loading

import importlib.resources
from typing import (Dict, List, Mapping, NamedTuple, Optional, Tuple)

SCOPE_SYSTEM = 'system'
SCOPE_PROCESS = 'process'
SCOPE_CGROUP = 'cgroup'

scopes = (SCOPE_SYSTEM, SCOPE_PROCESS, SCOPE_CGROUP)

arm_architectures = ('aarch64', 'arm64')


class EventDefError(Exception):
    """Base class for all catalog and formula errors."""


class FormatError(EventDefError):

    def __init__(self, message: str, path: Optional[str] = None,
                 content: Optional[str] = None):
        self.reason = message
        self.path = path
        self.content = content
        if path:
            message = f'{path}: {message}'
        if content is not None:
            message = f'{message}: {content}'
        super().__init__(message)


class ResourceError(EventDefError):
    pass


class TargetLookupError(EventDefError, LookupError):
    pass


class ConditionalSyntaxError(EventDefError, ValueError):

    def __init__(self, message: str, fragment: str):
        self.reason = message
        self.fragment = fragment
        super().__init__(f'{message}: {fragment}')


class EventDefinition(NamedTuple):
    raw: str
    name: str
    device: str = ''
    description: str = ''


GroupDefinition = List[EventDefinition]


class Metadata(NamedTuple):
    architecture: str
    vendor: str
    microarchitecture: str
    supports_fixed_tma: bool = False
    supports_pebs: bool = False
    supports_ocr: bool = False
    supports_uncore: bool = False
    supports_ref_cycles: bool = False
    # raw text of the sampling tool's event listing, matched by substring
    perf_supported_events: str = ''
    uncore_device_ids: Mapping[str, Tuple[int, ...]] = {}

    @classmethod
    def from_dict(cls, d: Dict) -> 'Metadata':
        if not isinstance(d, dict):
            raise FormatError('metadata must be a json object')
        unknown = set(d) - set(cls._fields)
        if unknown:
            raise FormatError('unknown metadata fields',
                              content=', '.join(sorted(unknown)))
        missing = [f for f in ('architecture', 'vendor', 'microarchitecture')
                   if f not in d]
        if missing:
            raise FormatError('missing metadata fields',
                              content=', '.join(missing))
        d = dict(d)
        perf_events = d.get('perf_supported_events', '')
        if not isinstance(perf_events, str):
            perf_events = '\n'.join(perf_events)
        d['perf_supported_events'] = perf_events
        d['uncore_device_ids'] = {
            k: tuple(int(x) for x in v)
            for k, v in d.get('uncore_device_ids', {}).items()
        }
        return cls(**d)


def is_arm(metadata: Metadata) -> bool:
    return metadata.architecture in arm_architectures


def check_scope(scope: str) -> str:
    if scope not in scopes:
        raise ValueError(f'unknown collection scope {scope!r}, '
                         f'expected one of {", ".join(scopes)}')
    return scope


def uarch_prefix(metadata: Metadata) -> str:
    """'EMR_XCC' -> 'emr', 'Sapphire Rapids' -> 'sapphire'"""
    uarch = metadata.microarchitecture.split('_')[0].lower()
    return uarch.split(' ')[0]


# fixed-function TMA counters are missing on some virtual machines, these
# microarchitectures ship an alternate catalog for that case
nofixedtma_uarchs = ('icx', 'spr', 'emr')


def x86_catalog_name(metadata: Metadata, suffix: str) -> str:
    uarch = uarch_prefix(metadata)
    alternate = ''
    if uarch in nofixedtma_uarchs and not metadata.supports_fixed_tma:
        alternate = '_nofixedtma'
    return f'{uarch}{alternate}{suffix}'


def resource_path(*parts: str):
    """Return a Traversable for a file or directory under resources/."""
    node = importlib.resources.files('perfdefs').joinpath('resources')
    for p in parts:
        node = node.joinpath(p)
    return node
