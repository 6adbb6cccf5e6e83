"""Token program protocol: external burn primitive."""
from typing import Protocol, Sequence


class TokenProgram(Protocol):
    """Abstract interface for the stabilizing-token contract.

    ``burn`` either succeeds completely or raises ``TokenProgramError``.
    """

    def burn(
        self,
        program_id: bytes,
        source: bytes,
        mint: bytes,
        authority: bytes,
        signers: Sequence[bytes],
        amount: int,
    ) -> None: ...
