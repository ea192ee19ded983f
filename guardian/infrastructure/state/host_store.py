"""
File-based host registry
"""
import json
from pathlib import Path
from typing import List, Optional

from ...core.exceptions import ConfigError, HostExistsError, HostNotFoundError
from ...core.logging import get_logger
from ...core.paths import WorkspacePaths
from ...ssh.models import HostTarget

logger = get_logger(__name__)


class HostRegistry:
    """
    JSON-backed roster of target hosts.
    
    Files:
    - {home}/config.json - {"hosts": [...]}
    - {home}/.target - name of the selected target
    """
    
    def __init__(self, paths: WorkspacePaths):
        self.paths = paths
    
    def load(self) -> List[HostTarget]:
        """Load all hosts, empty when the registry does not exist yet"""
        config_file = self.paths.config_file
        if not config_file.exists():
            return []
        
        try:
            data = json.loads(config_file.read_text(encoding='utf-8') or "{}")
        except json.JSONDecodeError as e:
            raise ConfigError(f"Failed to parse {config_file}: {e}") from e
        return [HostTarget.from_dict(item) for item in data.get("hosts", [])]
    
    def save(self, hosts: List[HostTarget]) -> None:
        """Write the full roster"""
        self.paths.home.mkdir(parents=True, exist_ok=True)
        data = {"hosts": [host.to_dict() for host in hosts]}
        self.paths.config_file.write_text(json.dumps(data, indent=2), encoding='utf-8')
    
    def find(self, name: str) -> Optional[HostTarget]:
        for host in self.load():
            if host.name == name:
                return host
        return None
    
    def get(self, name: str) -> HostTarget:
        """Like find(), but a missing host is an error"""
        host = self.find(name)
        if host is None:
            raise HostNotFoundError(f"Host '{name}' has not been configured. Add it first.")
        return host
    
    def add(self, host: HostTarget) -> None:
        hosts = self.load()
        if any(h.name == host.name for h in hosts):
            raise HostExistsError(f"Host with name '{host.name}' already exists, did you mean to update it?")
        hosts.append(host)
        self.save(hosts)
    
    def update(self, name: str, host: HostTarget) -> None:
        """Replace the entry called name, keeping its position"""
        hosts = self.load()
        for index, existing in enumerate(hosts):
            if existing.name == name:
                hosts[index] = host
                self.save(hosts)
                return
        raise HostNotFoundError(f"No target '{name}' exists. Add it first.")
    
    def remove(self, name: str) -> bool:
        """Delete a host; returns whether it existed"""
        hosts = self.load()
        remaining = [h for h in hosts if h.name != name]
        self.save(remaining)
        if self.selected() == name:
            self.clear_selection()
        return len(remaining) != len(hosts)
    
    def clear(self) -> None:
        self.save([])
        self.clear_selection()
    
    # --------------------
    # Target selection
    # --------------------
    def select(self, name: str) -> HostTarget:
        host = self.get(name)
        self.paths.home.mkdir(parents=True, exist_ok=True)
        self.paths.target_file.write_text(name, encoding='utf-8')
        return host
    
    def selected(self) -> Optional[str]:
        target_file = self.paths.target_file
        if not target_file.exists():
            return None
        return target_file.read_text(encoding='utf-8').strip() or None
    
    def clear_selection(self) -> None:
        self.paths.target_file.unlink(missing_ok=True)
    
    def resolve(self, name: Optional[str]) -> HostTarget:
        """Host by name, or the selected target when name is omitted"""
        if name:
            return self.get(name)
        selected = self.selected()
        if selected is None:
            raise HostNotFoundError("No host given and no target selected")
        return self.get(selected)
