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

# load the perf event groups to collect on a target
# load_events.py metadata.json [--override FILE|DIR] [--scope system] > groups.json

import argparse
import json
import logging
import sys
from typing import (List, Optional, Sequence, Tuple)

from perfdefs.arm_events import load_arm_event_groups
from perfdefs.eventdefs import (EventDefError, GroupDefinition, Metadata,
                                SCOPE_SYSTEM, check_scope, is_arm, scopes)
from perfdefs.x86_events import load_x86_event_groups

logger = logging.getLogger(__name__)


def load_event_groups(override_path: Optional[str], metadata: Metadata,
                      scope: str = SCOPE_SYSTEM
                      ) -> Tuple[List[GroupDefinition], List[str]]:
    """Load the event groups for the target described by metadata.

    Returns the collectable groups and the names of the events that were
    dropped because the target cannot collect them.
    """
    check_scope(scope)
    if is_arm(metadata):
        groups, uncollectable = load_arm_event_groups(override_path, metadata,
                                                      scope)
    else:
        groups, uncollectable = load_x86_event_groups(override_path, metadata,
                                                      scope)
    if uncollectable:
        logger.warning('Events not collectable on target: %s',
                       ', '.join(uncollectable))
    return groups, uncollectable


def format_event_groups(groups: Sequence[GroupDefinition]) -> str:
    """Format groups as the argument of perf stat -e."""
    return ','.join('{%s}' % ','.join(e.raw for e in g) for g in groups)


def check_group_sizes(groups: Sequence[GroupDefinition],
                      num_gp_counters: int) -> List[int]:
    """Return the indexes of groups with more events than counters."""
    oversized = []
    for i, group in enumerate(groups):
        available = num_gp_counters
        # cycles are counted on a fixed counter
        if any(e.name.lower() in ('cycles', 'cpu-cycles') for e in group):
            available += 1
        logger.debug('group %d has %d events, %d counters available', i,
                     len(group), available)
        if len(group) > available:
            logger.warning(
                'Event group %d has %d events but only %d counters, '
                '%d events potentially not counted: %s', i, len(group),
                available, len(group) - available,
                ','.join(e.name for e in group))
            oversized.append(i)
    return oversized


def groups_json(groups: Sequence[GroupDefinition],
                uncollectable: Sequence[str]):
    return {
        'groups': [[e._asdict() for e in g] for g in groups],
        'uncollectable': list(uncollectable),
    }


def setup_logging(verbose: bool):
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s')


def main(argv=None):
    ap = argparse.ArgumentParser(
        description='Load the perf event groups collectable on a target')
    ap.add_argument('metadata', type=argparse.FileType('r'),
                    help='Target metadata json file')
    ap.add_argument('--override',
                    help='Event definition file (x86) or directory (ARM)')
    ap.add_argument('--scope', choices=scopes, default=SCOPE_SYSTEM)
    ap.add_argument('--format', choices=('json', 'perf'), default='json')
    ap.add_argument('--counters', type=int,
                    help='Number of general purpose counters, warn about '
                    'larger groups')
    ap.add_argument('--output', type=argparse.FileType('w'),
                    default=sys.stdout)
    ap.add_argument('--verbose', action='store_true')
    args = ap.parse_args(argv)
    setup_logging(args.verbose)

    try:
        metadata = Metadata.from_dict(json.load(args.metadata))
        groups, uncollectable = load_event_groups(args.override, metadata,
                                                  args.scope)
    except (EventDefError, ValueError) as e:
        print('error:', e, file=sys.stderr)
        return 1

    if args.counters is not None:
        check_group_sizes(groups, args.counters)
    if args.format == 'perf':
        args.output.write(format_event_groups(groups))
    else:
        args.output.write(
            json.dumps(groups_json(groups, uncollectable), sort_keys=True,
                       indent=4, separators=(',', ': ')))
    args.output.write('\n')
    return 0


if __name__ == '__main__':
    sys.exit(main())
