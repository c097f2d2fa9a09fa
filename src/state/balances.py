"""
Multi-token balance tracking with deterministic ordering.

Implements BalanceTable[Owner, Token] -> Amount
"""

from typing import Dict, List, Tuple


# Type aliases
Owner = str  # account alias, payment address alias or on-chain address
Token = str  # token alias or address
Amount = int  # Non-negative integer in raw token units


class BalanceTable:
    """
    Balance table mapping (owner, token) -> amount.

    Zero balances are dropped so the table stays sparse. Iteration helpers
    return owners in sorted order so callers drawing from them with a seeded
    rng stay reproducible.
    """

    def __init__(self):
        self._balances: Dict[Tuple[Owner, Token], Amount] = {}

    def get(self, owner: Owner, token: Token) -> Amount:
        """Get balance for (owner, token). Returns 0 if not found."""
        return self._balances.get((owner, token), 0)

    def set(self, owner: Owner, token: Token, amount: Amount) -> None:
        """
        Set balance for (owner, token).

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {owner}/{token} = {amount}")
        if amount == 0:
            self._balances.pop((owner, token), None)
        else:
            self._balances[(owner, token)] = amount

    def add(self, owner: Owner, token: Token, delta: Amount) -> None:
        """
        Add delta to balance (delta may be negative).

        Raises:
            ValueError: If resulting balance would be negative
        """
        current = self.get(owner, token)
        new_balance = current + delta
        if new_balance < 0:
            raise ValueError(
                f"Insufficient balance for {owner}/{token}: {current} + {delta} = {new_balance} < 0"
            )
        self.set(owner, token, new_balance)

    def subtract(self, owner: Owner, token: Token, delta: Amount) -> None:
        if delta < 0:
            raise ValueError(f"Delta must be non-negative: {delta}")
        self.add(owner, token, -delta)

    def transfer(self, source: Owner, target: Owner, token: Token, amount: Amount) -> None:
        """Move ``amount`` from source to target; nothing changes on failure."""
        self.subtract(source, token, amount)
        self.add(target, token, amount)

    def holders(self, token: Token, min_amount: Amount = 1) -> List[Owner]:
        """Owners holding at least ``min_amount`` of ``token``, sorted."""
        return sorted(o for (o, t), amount in self._balances.items() if t == token and amount >= min_amount)

    def copy(self) -> "BalanceTable":
        out = BalanceTable()
        out._balances = dict(self._balances)
        return out

    def verify_non_negative(self) -> bool:
        """
        Verify all balances are non-negative.

        Returns:
            True if all balances >= 0
        """
        return all(amount >= 0 for amount in self._balances.values())

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"
