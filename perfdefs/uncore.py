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

# expand uncore event groups into one group per uncore device
#
# cha/event=0x35,umask=0xc80ffe01,name='UNCCTI.IMC'/
# expands to (one group per CHA)
# uncore_cha_0/event=0x35,umask=0xc80ffe01,name='UNCCTI.IMC.0'/
# and on AMD
# amd_l3/event=0x04,umask=0xff,name='l3_lookup_state.all_coherent_accesses_to_l3'/

import logging
import re
from typing import (List, Sequence)

from perfdefs.eventdefs import (EventDefinition, FormatError, GroupDefinition,
                                Metadata)

logger = logging.getLogger(__name__)

# unit type, event code, umask and any trailing params, event name
uncore_event_re = re.compile(
    r"(\w+)/event=(0x[0-9a-fA-F]+),umask=(0x[0-9a-fA-F]+.*),name='(.*)'")

# vendor -> (unit template, name template), anything else uses the default
uncore_templates = {
    'AuthenticAMD': ('amd_{unit}', '{name}'),
}
default_uncore_template = ('uncore_{unit}_{id}', '{name}.{id}')


def expand_uncore_group(group: GroupDefinition, ids: Sequence[int],
                        vendor: str) -> List[GroupDefinition]:
    unit_template, name_template = uncore_templates.get(
        vendor, default_uncore_template)
    groups = []
    for device_id in ids:
        new_group = []
        for event in group:
            m = uncore_event_re.search(event.raw)
            if not m:
                raise FormatError('unexpected raw uncore event format',
                                  content=event.raw)
            unit, code, umask, name = m.groups()
            name = name_template.format(name=name, id=device_id)
            unit = unit_template.format(unit=unit, id=device_id)
            raw = f"{unit}/event={code},umask={umask},name='{name}'/"
            new_group.append(EventDefinition(raw, name, event.device))
        groups.append(new_group)
    return groups


def expand_uncore_groups(groups: Sequence[GroupDefinition],
                         metadata: Metadata) -> List[GroupDefinition]:
    # a group holds events of a single device type, the first event tells
    expanded = []
    for group in groups:
        if not group:
            continue
        device = group[0].device
        if device not in metadata.uncore_device_ids:
            expanded.append(group)
            continue
        ids = metadata.uncore_device_ids[device]
        if not ids:
            logger.warning('No uncore devices found for type %s, dropping group',
                           device)
            continue
        expanded += expand_uncore_group(group, ids, metadata.vendor)
    return expanded
