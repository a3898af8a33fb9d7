"""Artifactory REST client used by ``check`` and ``out``.

Search goes through AQL (``api/search/aql``); uploads are plain PUTs of each
local file, fanned out over a thread pool. Neither operation retries.
"""

from __future__ import annotations

import fnmatch
import hashlib
import json
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any
from urllib.parse import quote

import requests
from pydantic import BaseModel, Field

from .errors import ArtifactoryError, ConfigurationError
from .models import Source
from .reporter import Reporter

_GLOB_SPECIALS = "*?["
_REGEX_SPECIALS = r".^$*+?{}[]\|()"


class SearchSpec(BaseModel):
    """What to look for in the repository.

    Attributes:
        pattern: ``repo/path/name`` where the name (and path) may contain
                 ``*`` and ``?`` wildcards. A trailing ``/`` means every file
                 in that folder.
        props: Property filter, ``key=value;key2=v1,v2``.
        recursive: Also match files in sub-folders of the pattern's folder.
    """

    pattern: str
    props: str = ""
    recursive: bool = True


class UploadSpec(BaseModel):
    """Which local files go where.

    Attributes:
        source: Local path pattern (glob, or regular expression if
                ``regexp`` is set).
        target: Repository folder, ``repo/path/``.
        props: Properties attached to every uploaded file.
        flat: Upload every file directly under ``target``; otherwise keep
              the path relative to the pattern's base folder.
    """

    source: str
    target: str
    props: str = ""
    regexp: bool = False
    recursive: bool = True
    flat: bool = True
    explode_archive: bool = False


class UploadResult(BaseModel):
    uploaded: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)

    @property
    def total_uploaded(self) -> int:
        return len(self.uploaded)

    @property
    def total_failed(self) -> int:
        return len(self.failed)


def add_trailing_slash(path: str) -> str:
    return path if path.endswith("/") else path + "/"


def remove_starting_slash(path: str) -> str:
    return path.lstrip("/")


def parse_props(props: str) -> dict[str, list[str]]:
    """Parse ``key=value;key2=v1,v2`` into ``{"key": ["value"], ...}``.

    Raises:
        ConfigurationError: If an item has no ``=``.
    """
    parsed: dict[str, list[str]] = {}
    for item in props.split(";"):
        item = item.strip()
        if not item:
            continue
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise ConfigurationError(f"Invalid property '{item}', expected key=value")
        parsed.setdefault(key.strip(), []).extend(
            v.strip() for v in value.split(",")
        )
    return parsed


def build_aql(spec: SearchSpec) -> str:
    """Translate a search spec into an AQL ``items.find`` query.

    Examples:
        "libs/app/*.zip", recursive → files named *.zip in libs:app or below
        "libs/app/*.zip", not recursive → files named *.zip in libs:app only

    Raises:
        ConfigurationError: If the pattern has no repository part.
    """
    pattern = remove_starting_slash(spec.pattern)
    if not pattern or pattern.endswith("/"):
        pattern += "*"
    repo, _, rest = pattern.partition("/")
    if not repo or any(c in repo for c in _GLOB_SPECIALS):
        raise ConfigurationError(
            f"Invalid pattern '{spec.pattern}', expected "
            "[repository_name]/[repository_path]"
        )
    directory, _, name = rest.rpartition("/")

    criteria: dict[str, Any] = {"repo": repo, "type": "file"}
    criteria["name"] = {"$match": name or "*"}
    and_clauses: list[dict[str, Any]] = []
    if spec.recursive:
        # An empty directory means the whole repository.
        if directory:
            and_clauses.append(
                {
                    "$or": [
                        {"path": {"$match": directory}},
                        {"path": {"$match": f"{directory}/*"}},
                    ]
                }
            )
    else:
        criteria["path"] = {"$match": directory or "."}

    for key, values in parse_props(spec.props).items():
        if len(values) == 1:
            criteria[f"@{key}"] = values[0]
        else:
            and_clauses.append({"$or": [{f"@{key}": v} for v in values]})
    if and_clauses:
        criteria["$and"] = and_clauses

    return f'items.find({json.dumps(criteria)}).include("repo","path","name")'


def _result_path(item: dict[str, Any]) -> str:
    # Files at the repository root are reported with path ".".
    path = item.get("path", ".")
    parts = [item["repo"]] if path in ("", ".") else [item["repo"], path]
    return "/".join([*parts, item["name"]])


def _static_prefix(pattern: str, specials: str) -> str:
    """Return the longest leading part of ``pattern`` with no special char."""
    for i, char in enumerate(pattern):
        if char in specials:
            return pattern[:i]
    return pattern


def select_local_files(
    pattern: str, *, regexp: bool = False, recursive: bool = True
) -> list[tuple[Path, str]]:
    """Find local files matching an upload pattern.

    In glob mode ``*`` also matches ``/``, so "dir/*.zip" picks up zips in
    sub-folders when ``recursive`` is set. A pattern without wildcards names
    a single file, or every file below it if it is a folder.

    Returns:
        Sorted ``(file, path relative to the pattern's base folder)`` pairs.
    """
    specials = _REGEX_SPECIALS if regexp else _GLOB_SPECIALS
    prefix = _static_prefix(pattern, specials)

    if prefix == pattern and not regexp:
        target = Path(pattern)
        if target.is_file():
            return [(target, target.name)]
        base = target
        candidates = base.rglob("*") if recursive else base.glob("*")
        return sorted(
            (p, p.relative_to(base).as_posix()) for p in candidates if p.is_file()
        )

    head, sep, _ = prefix.rpartition("/")
    # Keep the pattern's own spelling of the base folder ("./", "/", ...)
    # so the full pattern can be matched against it verbatim.
    base_str = head + sep
    base = Path(base_str or ".")
    if not base.is_dir():
        return []
    matcher = re.compile(pattern) if regexp else None
    selected: list[tuple[Path, str]] = []
    for p in base.rglob("*") if recursive else base.glob("*"):
        if not p.is_file():
            continue
        relative = p.relative_to(base).as_posix()
        full = base_str + relative
        if matcher is not None:
            matched = matcher.fullmatch(full) is not None
        else:
            matched = fnmatch.fnmatchcase(full, pattern)
        if matched:
            selected.append((p, relative))
    return sorted(selected)


def _checksum_headers(path: Path) -> dict[str, str]:
    sha1 = hashlib.sha1()
    sha256 = hashlib.sha256()
    md5 = hashlib.md5()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(1024 * 1024), b""):
            sha1.update(chunk)
            sha256.update(chunk)
            md5.update(chunk)
    return {
        "X-Checksum-Sha1": sha1.hexdigest(),
        "X-Checksum-Sha256": sha256.hexdigest(),
        "X-Checksum": md5.hexdigest(),
    }


def _matrix_params(props: str) -> str:
    return "".join(
        f";{quote(key)}={','.join(quote(v, safe='') for v in values)}"
        for key, values in parse_props(props).items()
    )


class ArtifactoryClient:
    """Client for the Artifactory REST API."""

    def __init__(
        self,
        url: str,
        *,
        user: str = "",
        password: str = "",
        api_key: str = "",
        timeout: int = 60,
        session: requests.Session | None = None,
        reporter: Reporter | None = None,
    ):
        if not url:
            raise ConfigurationError("You must set an url in source.")
        self.base_url = url.rstrip("/")
        self.timeout = timeout
        self.reporter = reporter or Reporter()
        self.session = session or requests.Session()
        if api_key:
            self.session.headers["X-JFrog-Art-Api"] = api_key
        elif user:
            self.session.auth = (user, password)

    @classmethod
    def from_source(
        cls, source: Source, reporter: Reporter | None = None
    ) -> ArtifactoryClient:
        return cls(
            source.url,
            user=source.user,
            password=source.password,
            api_key=source.api_key,
            reporter=reporter,
        )

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> requests.Response:
        url = f"{self.base_url}/{endpoint}"
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise ArtifactoryError(f"Artifactory request to {url} failed: {exc}") from exc

        try:
            resp.raise_for_status()
        except requests.HTTPError as exc:
            raise ArtifactoryError(
                f"Artifactory API error {resp.status_code}: {resp.text}"
            ) from exc
        return resp

    def search(self, spec: SearchSpec) -> list[str]:
        """Return the ``repo/path/name`` of every file matching ``spec``.

        Raises:
            ArtifactoryError: If the query fails.
        """
        query = build_aql(spec)
        self.reporter.debug(f"Searching with AQL: {query}")
        resp = self._request(
            "POST",
            "api/search/aql",
            data=query.encode(),
            headers={"Content-Type": "text/plain"},
        )
        try:
            results = resp.json().get("results", [])
        except ValueError as exc:
            raise ArtifactoryError(f"Invalid search response: {resp.text}") from exc
        return [_result_path(item) for item in results]

    def _upload_one(
        self, local: Path, remote: str, matrix: str, explode_archive: bool
    ) -> tuple[str, str, str]:
        try:
            headers = _checksum_headers(local)
            if explode_archive:
                headers["X-Explode-Archive"] = "true"
            with local.open("rb") as handle:
                self._request(
                    "PUT", quote(remote) + matrix, data=handle, headers=headers
                )
        except (ArtifactoryError, OSError) as exc:
            return ("failed", remote, str(exc))
        return ("uploaded", remote, "")

    def upload(self, spec: UploadSpec, threads: int) -> UploadResult:
        """Upload every local file matching ``spec.source``.

        Individual failures are logged and counted in the result rather than
        raised, so the caller sees how many files made it.
        """
        files = select_local_files(
            spec.source, regexp=spec.regexp, recursive=spec.recursive
        )
        target = add_trailing_slash(remove_starting_slash(spec.target))
        matrix = _matrix_params(spec.props)
        tasks = [
            (local, target + (local.name if spec.flat else relative))
            for local, relative in files
        ]

        result = UploadResult()
        if not tasks:
            self.reporter.warning(f"No files found matching '{spec.source}'")
            return result

        self.reporter.debug(f"Uploading {len(tasks)} files with {threads} threads")
        with ThreadPoolExecutor(max_workers=threads) as executor:
            futures = [
                executor.submit(
                    self._upload_one, local, remote, matrix, spec.explode_archive
                )
                for local, remote in tasks
            ]
            for future in as_completed(futures):
                status, remote, detail = future.result()
                if status == "uploaded":
                    result.uploaded.append(remote)
                    self.reporter.info(f"  Uploaded: {remote}")
                else:
                    result.failed.append(remote)
                    self.reporter.error(f"Upload failed: {remote} - {detail}")

        result.uploaded.sort()
        result.failed.sort()
        return result
