"""Evidence pack codec: write a browser run's forensic evidence to disk and load it back."""

from evidence_pack.pack.loader import (
    discover_packs as discover_packs,
    load_evidence_pack as load_evidence_pack,
    load_pack_by_id as load_pack_by_id,
)
from evidence_pack.pack.paths import (
    EvidencePackPaths as EvidencePackPaths,
    get_pack_paths as get_pack_paths,
)
from evidence_pack.pack.writer import write_evidence_pack as write_evidence_pack
from evidence_pack.utils.errors import (
    EvidencePackError as EvidencePackError,
    PackWriteError as PackWriteError,
)
