import numpy as np

# columns of a buffer slot
EX, IN, CURRENT = 0, 1, 2


class InputBuffer:
    """
    Per-step input sums for one neuron.
    Slot k holds what arrives k steps from now: summed excitatory weight,
    summed inhibitory weight (kept negative) and summed injected current.
    The writer fills slots before the neuron pops the current one; pop()
    clears it, so every slot is consumed exactly once.
    """
    def __init__(self, max_delay: int = 0):
        max_delay = int(max_delay)
        if max_delay < 0:
            raise ValueError("max_delay must be >= 0")
        self.max_delay = max_delay
        self.slots = np.zeros((max_delay + 1, 3), dtype=float)
        self.head = 0

    def _index(self, lag: int) -> int:
        lag = int(lag)
        if not 0 <= lag <= self.max_delay:
            raise ValueError(f"lag {lag} outside [0, {self.max_delay}]")
        return (self.head + lag) % self.slots.shape[0]

    def add_spike(self, weight: float, lag: int = 0, multiplicity: int = 1):
        # sign decides the channel; inhibitory weights keep their sign
        w = float(weight) * multiplicity
        self.slots[self._index(lag), EX if weight > 0.0 else IN] += w

    def add_current(self, amplitude: float, lag: int = 0):
        self.slots[self._index(lag), CURRENT] += float(amplitude)

    def peek(self, lag: int = 0):
        ex, inh, current = self.slots[self._index(lag)]
        return float(ex), float(inh), float(current)

    def pop(self):
        ex, inh, current = self.peek(0)
        self.slots[self.head].fill(0.0)
        self.head = (self.head + 1) % self.slots.shape[0]
        return ex, inh, current

    def reset(self):
        self.slots.fill(0.0)
        self.head = 0
