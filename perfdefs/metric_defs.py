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

# load metric definitions and convert their formulas for the evaluator
# metric_defs.py metadata.json [--override FILE|DIR] [--metric NAME ...]

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import (Any, List, NamedTuple, Optional, Sequence)

from perfdefs.arm_events import (arm_catalog_dir, json_files, read_json_list)
from perfdefs.conditional import transform_conditional
from perfdefs.eventdefs import (ConditionalSyntaxError, EventDefError,
                                FormatError, Metadata, ResourceError,
                                TargetLookupError, is_arm, resource_path,
                                x86_catalog_name)
from perfdefs.load_events import setup_logging

logger = logging.getLogger(__name__)


class MetricDefinition(NamedTuple):
    name: str
    expression: str
    description: str = ''
    # filled in later by the expression compiler
    variables: Optional[Any] = None
    evaluable: Optional[Any] = None


def read_x86_metrics(override_path: Optional[str],
                     metadata: Metadata) -> List[MetricDefinition]:
    if override_path:
        path = Path(override_path)
        if not path.is_file():
            raise ResourceError(
                f'metric definition override file not found: {override_path}')
    else:
        name = x86_catalog_name(metadata, '.json')
        path = resource_path('metrics', metadata.architecture,
                             metadata.vendor, name)
        if not path.is_file():
            raise TargetLookupError(
                f'no metric definitions for {metadata.vendor} '
                f'{metadata.microarchitecture} '
                f'({metadata.architecture}/{name})')
    try:
        jf = json.loads(path.read_text(encoding='utf-8'))
    except (OSError, UnicodeDecodeError) as e:
        raise ResourceError(f'cannot read metric definitions {path}: {e}') from e
    except ValueError as e:
        raise FormatError(f'invalid json: {e}', path=str(path)) from e
    if not isinstance(jf, list):
        raise FormatError('expected a list of metrics', path=str(path))
    metrics = []
    for j in jf:
        if not isinstance(j, dict) or 'name' not in j or 'expression' not in j:
            raise FormatError('metric without name or expression',
                              path=str(path), content=json.dumps(j))
        metrics.append(MetricDefinition(j['name'], j['expression'],
                                        j.get('description', '')))
    return metrics


def read_arm_metrics(override_path: Optional[str],
                     metadata: Metadata) -> List[MetricDefinition]:
    directory = arm_catalog_dir('metrics', override_path, metadata)
    metrics = []
    for path in json_files(directory):
        jf = read_json_list(path)
        if jf is None:
            continue
        for j in jf:
            if not isinstance(j, dict) or 'MetricName' not in j or \
                    'MetricExpr' not in j:
                logger.debug('Skipping ARM metric record in %s', path)
                continue
            desc = j.get('PublicDescription') or j.get('BriefDescription', '')
            metrics.append(MetricDefinition(j['MetricName'], j['MetricExpr'],
                                            desc))
    return metrics


def select_metrics(metrics: Sequence[MetricDefinition],
                   selected: Sequence[str]) -> List[MetricDefinition]:
    if not selected:
        return list(metrics)
    known = set(m.name for m in metrics)
    missing = [s for s in selected if s not in known]
    if missing:
        raise TargetLookupError('metrics not found: ' + ', '.join(missing))
    wanted = set(selected)
    return [m for m in metrics if m.name in wanted]


def load_metric_definitions(override_path: Optional[str],
                            selected: Sequence[str],
                            metadata: Metadata) -> List[MetricDefinition]:
    if is_arm(metadata):
        metrics = read_arm_metrics(override_path, metadata)
    else:
        metrics = read_x86_metrics(override_path, metadata)
    metrics = select_metrics(metrics, selected)
    result = []
    for m in metrics:
        try:
            expr = transform_conditional(m.expression)
        except ConditionalSyntaxError as e:
            raise ConditionalSyntaxError(f'metric {m.name}: {e.reason}',
                                         e.fragment) from e
        result.append(m._replace(expression=expr))
    return result


def main(argv=None):
    ap = argparse.ArgumentParser(
        description='Load metric definitions for a target')
    ap.add_argument('metadata', type=argparse.FileType('r'),
                    help='Target metadata json file')
    ap.add_argument('--override',
                    help='Metric definition file (x86) or directory (ARM)')
    ap.add_argument('--metric', action='append', default=[],
                    help='Only load this metric, can be repeated')
    ap.add_argument('--output', type=argparse.FileType('w'),
                    default=sys.stdout)
    ap.add_argument('--verbose', action='store_true')
    args = ap.parse_args(argv)
    setup_logging(args.verbose)

    try:
        metadata = Metadata.from_dict(json.load(args.metadata))
        metrics = load_metric_definitions(args.override, args.metric, metadata)
    except (EventDefError, ValueError) as e:
        print('error:', e, file=sys.stderr)
        return 1

    jo = [{'name': m.name, 'expression': m.expression,
           'description': m.description} for m in metrics]
    args.output.write(
        json.dumps(jo, sort_keys=True, indent=4, separators=(',', ': ')))
    args.output.write('\n')
    return 0


if __name__ == '__main__':
    sys.exit(main())
