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

"""Tests for the event group loading entry point and command line."""

import json
import logging

import pytest

from conftest import (amd_metadata, arm_metadata, ev, intel_metadata)
from perfdefs.load_events import (check_group_sizes, format_event_groups,
                                  load_event_groups, main)

supported_targets = [
    intel_metadata('SPR'),
    intel_metadata('SPR', supports_fixed_tma=False),
    intel_metadata('EMR_XCC'),
    intel_metadata('EMR_MCC', supports_fixed_tma=False),
    intel_metadata('ICX'),
    intel_metadata('ICX', supports_fixed_tma=False),
    amd_metadata(),
    arm_metadata(),
]


class TestLoadEventGroups:

    @pytest.mark.parametrize('metadata', supported_targets,
                             ids=lambda m: m.microarchitecture)
    def test_supported_targets(self, metadata):
        groups, uncollectable = load_event_groups(None, metadata)
        assert groups
        assert uncollectable == []

    def test_uncollectable_reported(self, caplog):
        m = intel_metadata(supports_pebs=False)
        with caplog.at_level(logging.WARNING):
            _, uncollectable = load_event_groups(None, m, 'system')
        assert uncollectable == ['INT_MISC.UNKNOWN_BRANCH_CYCLES',
                                 'UOPS_RETIRED.MS']
        assert 'Events not collectable on target' in caplog.text

    def test_bad_scope(self, spr):
        with pytest.raises(ValueError):
            load_event_groups(None, spr, 'thread')


class TestFormat:

    def test_format(self):
        groups = [[ev('a'), ev('b')], [ev('c')]]
        assert format_event_groups(groups) == '{a,b},{c}'

    def test_format_raw(self):
        groups = [[ev("cpu/event=0x51,umask=0x01,name='L1D.REPLACEMENT'/",
                      'L1D.REPLACEMENT', 'cpu'), ev('instructions')]]
        assert format_event_groups(groups) == \
            "{cpu/event=0x51,umask=0x01,name='L1D.REPLACEMENT'/,instructions}"

    def test_empty(self):
        assert format_event_groups([]) == ''


class TestGroupSizes:

    def test_fits(self):
        groups = [[ev(n) for n in 'abcd'],
                  [ev('cpu-cycles')] + [ev(n) for n in 'abcd']]
        assert check_group_sizes(groups, 4) == []

    def test_oversized(self, caplog):
        groups = [[ev(n) for n in 'abc'], [ev(n) for n in 'abcde'],
                  [ev('cycles')] + [ev(n) for n in 'abcde']]
        with caplog.at_level(logging.WARNING):
            assert check_group_sizes(groups, 4) == [1, 2]
        assert 'potentially not counted' in caplog.text


class TestMain:

    def test_json(self, spr, metadata_file, capsys):
        assert main([metadata_file(spr), '--scope', 'process']) == 0
        out = json.loads(capsys.readouterr().out)
        assert len(out['groups']) == 6
        assert out['groups'][0][0]['name'] == 'L1D.REPLACEMENT'
        assert 'UNCCTI.IMDL' in out['uncollectable']

    def test_perf_format(self, metadata_file, catalog, capsys):
        path = catalog('instructions,\ncpu-cycles;\nref-cycles;\n')
        assert main([metadata_file(intel_metadata()), '--override', path,
                     '--format', 'perf']) == 0
        assert capsys.readouterr().out == \
            '{instructions,cpu-cycles},{ref-cycles}\n'

    def test_error(self, metadata_file, capsys):
        assert main([metadata_file(intel_metadata('SKX'))]) == 1
        assert 'error: no event definitions' in capsys.readouterr().err

    def test_counters(self, metadata_file, catalog, capsys, caplog):
        path = catalog('instructions,\ncpu-cycles,\nref-cycles;\n')
        with caplog.at_level(logging.WARNING):
            assert main([metadata_file(intel_metadata()), '--override', path,
                         '--counters', '1']) == 0
        assert 'Event group 0 has 3 events' in caplog.text
