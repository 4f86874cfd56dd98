import os
from pathlib import Path
from typing import Dict, Iterable

# Settings read at import time by the modules below
ENV_KEYS = (
	"GEMINI_API_KEY",
	"GEMINI_MODEL",
	"LLM_TIMEOUT_SECS",
	"LLM_TEMPERATURE",
	"LLM_MAX_OUTPUT_TOKENS",
	"SUPABASE_URL",
	"SUPABASE_SERVICE_ROLE_KEY",
	"SUPABASE_ANON_KEY",
	"REDIS_URL",
	"REDIS_TIMEOUT",
	"FORMGEN_STORE_FILE",
	"API_KEYS",
	"ADMIN_SESSION_TTL_SECONDS",
	"ALLOW_ORIGINS",
	"LOG_LEVEL",
)


def read_env_file(path: Path) -> Dict[str, str]:
	"""Parse KEY=value lines; quotes around the value are stripped."""
	values: Dict[str, str] = {}
	for line in path.read_text(encoding="utf-8").splitlines():
		s = line.strip()
		if s.startswith("export "):
			s = s[len("export "):].lstrip()
		if not s or s.startswith("#") or "=" not in s:
			continue
		key, val = (part.strip() for part in s.split("=", 1))
		if len(val) >= 2 and val[0] == val[-1] and val[0] in "\"'":
			val = val[1:-1]
		if key:
			values[key] = val
	return values


def load_env(path: Path, keys: Iterable[str] = ENV_KEYS) -> Dict[str, str]:
	"""Copy the formgen settings found in `path` into os.environ.

	Exported variables win over the file. Returns what was applied.
	"""
	if not path.is_file():
		return {}
	try:
		values = read_env_file(path)
	except (OSError, UnicodeDecodeError):
		return {}
	applied = {k: values[k] for k in keys if k in values and k not in os.environ}
	os.environ.update(applied)
	return applied


# Tests run offline against the process environment only
if not os.getenv("PYTEST_CURRENT_TEST"):
	load_env(Path(os.getenv("FORMGEN_ENV_FILE", ".env")))
