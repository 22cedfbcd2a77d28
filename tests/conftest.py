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

"""Shared fixtures for the event and metric loading tests."""

import json

import pytest

from perfdefs.eventdefs import (EventDefinition, Metadata)

# everything the packaged catalogs use outside of the cpu and uncore PMUs
perf_events_listing = '\n'.join([
    'cpu-cycles OR cycles                               [Hardware event]',
    'instructions                                       [Hardware event]',
    'ref-cycles                                         [Hardware event]',
    'cstate_core/c6-residency/                          [Kernel PMU event]',
    'cstate_pkg/c6-residency/                           [Kernel PMU event]',
    'power/energy-pkg/                                  [Kernel PMU event]',
    'power/energy-ram/                                  [Kernel PMU event]',
])


def intel_metadata(uarch='SPR', **kw):
    """Metadata for an Intel target that supports everything."""
    d = dict(architecture='x86_64', vendor='GenuineIntel',
             microarchitecture=uarch, supports_fixed_tma=True,
             supports_pebs=True, supports_ocr=True, supports_uncore=True,
             supports_ref_cycles=True,
             perf_supported_events=perf_events_listing,
             uncore_device_ids={'cha': (0, 1), 'imc': (0, 1, 2),
                                'upi': (0,)})
    d.update(kw)
    return Metadata(**d)


def amd_metadata(**kw):
    d = dict(architecture='x86_64', vendor='AuthenticAMD',
             microarchitecture='Genoa', supports_uncore=True,
             perf_supported_events=perf_events_listing,
             uncore_device_ids={'l3': (0, 1), 'df': (0,)})
    d.update(kw)
    return Metadata(**d)


def arm_metadata(uarch='Neoverse V2', **kw):
    d = dict(architecture='aarch64', vendor='ARM', microarchitecture=uarch,
             perf_supported_events=perf_events_listing)
    d.update(kw)
    return Metadata(**d)


def ev(raw, name=None, device=''):
    return EventDefinition(raw, name if name is not None else raw, device)


@pytest.fixture
def spr():
    return intel_metadata()


@pytest.fixture
def genoa():
    return amd_metadata()


@pytest.fixture
def neoverse():
    return arm_metadata()


@pytest.fixture
def metadata_file(tmp_path):
    """Write a metadata json file, return its path."""
    def write(metadata):
        d = metadata._asdict()
        d['uncore_device_ids'] = {k: list(v) for k, v in
                                  d['uncore_device_ids'].items()}
        path = tmp_path / 'metadata.json'
        path.write_text(json.dumps(d))
        return str(path)
    return write


@pytest.fixture
def catalog(tmp_path):
    """Write an x86 event catalog override, return its path."""
    def write(text, name='events.txt'):
        path = tmp_path / name
        path.write_text(text)
        return str(path)
    return write


@pytest.fixture
def arm_dir(tmp_path):
    """Create an ARM override directory from {file name: content}."""
    def write(files):
        d = tmp_path / 'arm'
        d.mkdir()
        for name, content in files.items():
            if not isinstance(content, str):
                content = json.dumps(content)
            (d / name).write_text(content)
        return str(d)
    return write
