import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class CredentialStore:
    """The bearer token and signed-in user, persisted as a JSON file.

    Plays the part of the browser's local storage: ``token`` and
    ``user`` keys, read back on start so a session survives restarts.
    """

    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> dict:
        try:
            data = json.loads(self.path.read_text(encoding='utf-8'))
        except FileNotFoundError:
            return {}
        except (ValueError, OSError) as e:
            logger.warning('ignoring unreadable credential file %s: %s', self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def save(self, token: str, user: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + '.tmp')
        tmp.write_text(json.dumps({'token': token, 'user': user}), encoding='utf-8')
        os.replace(tmp, self.path)

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass

    @property
    def token(self):
        return self.load().get('token')

    @property
    def user(self):
        return self.load().get('user')
