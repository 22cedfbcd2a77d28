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

# shorten long event names to keep the perf command line small
# uncore events are repeated once per uncore device, so they matter most

# Order matters: some long forms are substrings of later ones. Replacements
# of UNC_* names must start with "UNC", uncore events are identified by that
# prefix after abbreviation.
abbreviations = (
    ("UNC_CHA_TOR_INSERTS", "UNCCTI"),
    ("UNC_CHA_TOR_OCCUPANCY", "UNCCTO"),
    ("UNC_CHA_CLOCKTICKS", "UNCCCT"),
    ("UNC_M_CAS_COUNT_SCH", "UNCMCC"),
    ("IA_MISS_DRD_REMOTE", "IMDR"),
    ("IA_MISS_DRD_LOCAL", "IMDL"),
    ("IA_MISS_LLCPREFDATA", "IMLP"),
    ("IA_MISS_LLCPREFRFO", "IMLR"),
    ("IA_MISS_DRD_PREF_LOCAL", "IMDPL"),
    ("IA_MISS_DRD_PREF_REMOTE", "IMDRP"),
    ("IA_MISS_CRD_PREF", "IMCP"),
    ("IA_MISS_RFO_PREF", "IMRP"),
    ("IA_MISS_RFO", "IMRF"),
    ("IA_MISS_CRD", "IMC"),
    ("IA_MISS_DRD", "IMD"),
    ("IO_PCIRDCUR", "IPCI"),
    ("IO_ITOMCACHENEAR", "IITN"),
    ("IO_ITOM", "IITO"),
    ("IMD_OPT", "IMDO"),
)


def abbreviate(name: str) -> str:
    for long, short in abbreviations:
        name = name.replace(long, short)
    return name
