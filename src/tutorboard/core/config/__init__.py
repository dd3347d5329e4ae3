"""
Configuration management subsystem for tutorboard.

- **config.py**: Static configuration from environment variables
- **manager.py**: Dot-notation tunables from YAML defaults plus overrides

Only the static layer is re-exported here; import ConfigManager from
`tutorboard.core.config.manager` (it depends on the logging subsystem,
which itself reads the static layer).

Usage
-----
```python
from tutorboard.core.config import Config
from tutorboard.core.config.manager import ConfigManager

db_url = Config.DATABASE_URL
minutes = ConfigManager.get("onboarding.minutes_per_step", 5)
```
"""

from tutorboard.core.config.config import Config, Environment

__all__ = [
    "Config",
    "Environment",
]
