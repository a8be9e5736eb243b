import hashlib
import json
from collections.abc import Mapping

from addon_reconciler.core.utils import b64encode


def compute_secret_checksum(data: Mapping[str, bytes]) -> str:
    # Canonical form: JSON object with sorted keys and base64 encoded values
    canonical = json.dumps(
        {key: b64encode(value) for key, value in data.items()},
        sort_keys=True,
        separators=(',', ':'),
    )

    return hashlib.sha256(canonical.encode('utf-8')).hexdigest()


def compute_checksums(secrets: Mapping[str, Mapping[str, bytes]]) -> dict[str, str]:
    return {name: compute_secret_checksum(data) for name, data in secrets.items()}
