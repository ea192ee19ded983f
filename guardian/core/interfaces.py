"""
Core interfaces for dependency injection
"""
from abc import ABC, abstractmethod
from typing import Optional, Sequence


class PromptProvider(ABC):
    """User prompt interface"""
    
    @abstractmethod
    def prompt(self, message: str, default: Optional[str] = None, password: bool = False) -> str:
        """Prompt user for input"""
        pass
    
    @abstractmethod
    def choose(self, message: str, choices: Sequence[str], default: Optional[str] = None) -> str:
        """Prompt user to pick one of a fixed set of answers"""
        pass
    
    @abstractmethod
    def confirm(self, message: str, default: bool = False) -> bool:
        """Prompt user for confirmation"""
        pass
    
    def is_interactive(self) -> bool:
        """Whether a human can answer prompts"""
        return True
