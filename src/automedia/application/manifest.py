"""Manifest export – one record per script line, in script order."""

import json
from dataclasses import asdict
from pathlib import Path
from typing import Iterable, List, Union

from automedia.domain.models import ManifestEntry, ScriptLine


def build_manifest(lines: Iterable[ScriptLine]) -> List[ManifestEntry]:
    return [
        ManifestEntry(
            script_line=line.spoken_text,
            pic_prompt=line.image_prompt,
            filename=line.image_filename or "",
            status=line.status.value,
            api_key_batch=line.batch_id,
            timestamp=line.timestamp,
        )
        for line in lines
    ]


def manifest_to_json(entries: Iterable[ManifestEntry]) -> str:
    return json.dumps([asdict(entry) for entry in entries], indent=2, ensure_ascii=False)


def write_manifest(lines: Iterable[ScriptLine], path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(manifest_to_json(build_manifest(lines)), encoding="utf-8")
    return path
