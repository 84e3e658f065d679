"""Intel 8080 disassembler and partial CPU emulator for the Space Invaders ROM."""

__version__ = "0.1.0"
__all__ = ["disassembler", "emulator"]