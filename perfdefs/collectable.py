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

# decide whether an event can be collected on the target platform

import logging
from typing import Optional

from perfdefs.eventdefs import (EventDefinition, Metadata, SCOPE_CGROUP,
                                SCOPE_PROCESS)

logger = logging.getLogger(__name__)

fixed_tma_slots = 'TOPDOWN.SLOTS'
fixed_tma_prefix = 'PERF_METRICS.'

# not available on some cloud instances, e.g. GCP c4
pebs_events = frozenset(['INT_MISC.UNKNOWN_BRANCH_CYCLES', 'UOPS_RETIRED.MS'])

ocr_prefixes = ('OCR', 'OFFCORE_REQUESTS_OUTSTANDING')
uncore_prefix = 'UNC'


def narrow_scope(scope: str) -> bool:
    return scope in (SCOPE_PROCESS, SCOPE_CGROUP)


def is_ocr(event: EventDefinition) -> bool:
    return event.device == 'cpu' and event.name.startswith(ocr_prefixes)


# Each rule returns True (collectable), False (not collectable) or None
# (no decision, try the next rule). The last rule always decides.

def fixed_tma_rule(event, metadata, scope) -> Optional[bool]:
    if (event.name == fixed_tma_slots or
            event.name.startswith(fixed_tma_prefix)):
        if not metadata.supports_fixed_tma:
            logger.debug('Fixed counter TMA not supported on target: %s',
                         event.name)
            return False
    return None


def pebs_rule(event, metadata, scope) -> Optional[bool]:
    if event.name in pebs_events and not metadata.supports_pebs:
        logger.debug('PEBS events not supported on target: %s', event.name)
        return False
    return None


def core_rule(event, metadata, scope) -> Optional[bool]:
    if event.device == 'cpu' and not is_ocr(event):
        return True
    return None


def ocr_rule(event, metadata, scope) -> Optional[bool]:
    if not is_ocr(event):
        return None
    if not (metadata.supports_ocr and metadata.supports_uncore):
        logger.debug('Off-core response events not supported on target: %s',
                     event.name)
        return False
    if narrow_scope(scope):
        logger.debug('Off-core response events not supported in %s scope: %s',
                     scope, event.name)
        return False
    return True


def uncore_support_rule(event, metadata, scope) -> Optional[bool]:
    if event.name.startswith(uncore_prefix) and not metadata.supports_uncore:
        logger.debug('Uncore events not supported on target: %s', event.name)
        return False
    return None


def uncore_device_rule(event, metadata, scope) -> Optional[bool]:
    if event.device in ('', 'cpu'):
        return None
    if narrow_scope(scope):
        logger.debug('Uncore events not supported in %s scope: %s',
                     scope, event.name)
        return False
    if event.device not in metadata.uncore_device_ids:
        logger.debug('Uncore device not found: %s', event.device)
        return False
    if 'umask' not in event.raw or 'event' not in event.raw:
        logger.debug('Uncore event missing umask or event: %s', event.name)
        return False
    return True


def deviceless_rule(event, metadata, scope) -> Optional[bool]:
    if not metadata.supports_ref_cycles and 'ref-cycles' in event.name:
        logger.debug('ref-cycles not supported on target: %s', event.name)
        return False
    if narrow_scope(scope) and ('cstate_' in event.name or
                                'power/energy' in event.name):
        logger.debug('Cstate and power events not supported in %s scope: %s',
                     scope, event.name)
        return False
    name = event.name.split(':')[0]
    if name not in metadata.perf_supported_events:
        logger.debug('Event not supported by perf: %s', name)
        return False
    return True


rules = (
    fixed_tma_rule,
    pebs_rule,
    core_rule,
    ocr_rule,
    uncore_support_rule,
    uncore_device_rule,
    deviceless_rule,
)


def is_collectable(event: EventDefinition, metadata: Metadata,
                   scope: str) -> bool:
    for rule in rules:
        verdict = rule(event, metadata, scope)
        if verdict is not None:
            return verdict
    raise AssertionError('no collectability rule decided ' + event.name)
