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

# load ARM64 perf event definitions
# a directory of json files, e.g. linux tools/perf/pmu-events/arch/arm64/arm/
# each file is a list of {"ArchStdEvent": ..., "PublicDescription": ...}

import json
import logging
from pathlib import Path
from typing import (Dict, List, Optional, Set, Tuple)

from perfdefs.collectable import is_collectable
from perfdefs.eventdefs import (EventDefinition, GroupDefinition, Metadata,
                                ResourceError, TargetLookupError,
                                resource_path)

logger = logging.getLogger(__name__)

arm_variants: Dict[str, str] = {
    'Neoverse V2': 'neoverse-n2-v2',
}

arm_resource_arch = 'aarch64'


def lookup_arm_variant(metadata: Metadata) -> str:
    try:
        return arm_variants[metadata.microarchitecture]
    except KeyError:
        raise TargetLookupError(
            f'unknown ARM variant: {metadata.microarchitecture}') from None


def arm_catalog_dir(kind: str, override_path: Optional[str],
                    metadata: Metadata):
    """Return the directory holding the json files for kind (events/metrics)."""
    if override_path:
        path = Path(override_path)
        if not path.exists():
            raise ResourceError(f'override path not found: {override_path}')
        if not path.is_dir():
            raise ResourceError(
                f'ARM64 override path is not a directory: {override_path}')
        return path
    path = resource_path(kind, arm_resource_arch, lookup_arm_variant(metadata))
    if not path.is_dir():
        raise ResourceError(f'ARM {kind} directory not found: {path}')
    return path


def json_files(directory) -> List:
    files = [f for f in directory.iterdir()
             if f.is_file() and f.name.lower().endswith('.json')]
    return sorted(files, key=lambda f: f.name)


def read_json_list(path) -> Optional[List]:
    """Read a json list from path, None if the file is unusable."""
    try:
        jf = json.loads(path.read_text(encoding='utf-8'))
    except (OSError, UnicodeDecodeError) as e:
        logger.warning('Failed to read ARM file %s: %s', path, e)
        return None
    except ValueError as e:
        logger.warning('Failed to parse ARM file %s: %s', path, e)
        return None
    if not isinstance(jf, list):
        logger.warning('Failed to parse ARM file %s: expected a json list', path)
        return None
    return jf


def load_arm_event_groups(override_path: Optional[str], metadata: Metadata,
                          scope: str
                          ) -> Tuple[List[GroupDefinition], List[str]]:
    directory = arm_catalog_dir('events', override_path, metadata)
    groups: List[GroupDefinition] = []
    uncollectable: List[str] = []
    seen: Set[str] = set()
    for path in json_files(directory):
        logger.debug('Reading ARM events from %s', path)
        jf = read_json_list(path)
        if jf is None:
            continue
        group: GroupDefinition = []
        for j in jf:
            if not isinstance(j, dict) or 'ArchStdEvent' not in j:
                logger.debug('Skipping ARM record without ArchStdEvent in %s',
                             path)
                continue
            name = j['ArchStdEvent']
            event = EventDefinition(name, name, 'cpu',
                                    j.get('PublicDescription', ''))
            if is_collectable(event, metadata, scope):
                group.append(event)
            else:
                logger.debug('Event not collectable on target: %s', name)
                if name not in seen:
                    seen.add(name)
                    uncollectable.append(name)
        if group:
            groups.append(group)
        else:
            logger.warning('No collectable ARM events in file %s', path)
    return groups, uncollectable
