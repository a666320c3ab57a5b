"""
Fixed-topology policy network for evolved runners.

This module provides:
- PolicyNetwork: a 2-layer tanh network (input -> hidden -> output)
  whose weights are evolved rather than trained
- Gene-level operators used by the genetic algorithm: deep copy,
  uniform crossover and uniform-noise mutation
- make_generator: seedable random source threaded through every
  random operation so runs can be replayed
"""
import math
from typing import Dict, List, Optional, Sequence, Tuple

import torch
import torch.nn as nn

from ..exceptions import DimensionMismatch

# Genes in a fixed order; crossover and mutation iterate this order so a
# seeded generator always produces the same child.
GENE_NAMES = (
    'weights_input_hidden',
    'bias_hidden',
    'weights_hidden_output',
    'bias_output',
)


def make_generator(seed: Optional[int] = None) -> torch.Generator:
    """
    Create a CPU random generator.

    Args:
        seed: Fixed seed for reproducible runs. If None, the generator
              is seeded from a nondeterministic source.

    Returns:
        A torch.Generator.
    """
    generator = torch.Generator()
    if seed is None:
        generator.seed()
    else:
        generator.manual_seed(seed)
    return generator


def xavier_bound(fan_in: int, fan_out: int) -> float:
    """Uniform Xavier/Glorot limit for a layer."""
    return math.sqrt(6.0 / (fan_in + fan_out))


def _uniform(
    shape: Tuple[int, ...],
    bound: float,
    generator: Optional[torch.Generator],
) -> torch.Tensor:
    """Sample uniformly from [-bound, bound)."""
    sample = torch.rand(shape, generator=generator, dtype=torch.float64)
    return (sample * 2.0 - 1.0) * bound


class PolicyNetwork(nn.Module):
    """
    Feedforward controller mapping a sensor vector to motor outputs.

    hidden_i = tanh(b_h[i] + sum_j x[j] * W_ih[j][i])
    output_i = tanh(b_o[i] + sum_j hidden[j] * W_ho[j][i])

    Weights are stored as (fan_in, fan_out) matrices in float64. They are
    registered as parameters without gradients: the network is only ever
    changed by the genetic operators below.

    Attributes:
        input_size: Length of the sensor vector.
        hidden_size: Number of hidden units.
        output_size: Number of motor outputs.

    Example:
        generator = make_generator(42)
        brain = PolicyNetwork(8, 12, 3, generator=generator)
        outputs = brain.infer([0.5] * 8)

        child = brain.crossover(other_brain, generator=generator)
        child.mutate(rate=0.1, strength=0.3, generator=generator)
    """

    def __init__(
        self,
        input_size: int = 8,
        hidden_size: int = 12,
        output_size: int = 3,
        generator: Optional[torch.Generator] = None,
        randomize: bool = True,
    ):
        """
        Allocate and initialize the network.

        Args:
            input_size: Number of inputs.
            hidden_size: Number of hidden units.
            output_size: Number of outputs.
            generator: Random source for initialization. Falls back to the
                       global torch RNG when None.
            randomize: If False, all genes start at zero. Used internally
                       when the genes are about to be overwritten.
        """
        super().__init__()
        self.input_size = input_size
        self.hidden_size = hidden_size
        self.output_size = output_size

        if randomize:
            w_ih = _uniform(
                (input_size, hidden_size),
                xavier_bound(input_size, hidden_size),
                generator,
            )
            w_ho = _uniform(
                (hidden_size, output_size),
                xavier_bound(hidden_size, output_size),
                generator,
            )
            b_h = _uniform((hidden_size,), 1.0, generator)
            b_o = _uniform((output_size,), 1.0, generator)
        else:
            w_ih = torch.zeros(input_size, hidden_size, dtype=torch.float64)
            w_ho = torch.zeros(hidden_size, output_size, dtype=torch.float64)
            b_h = torch.zeros(hidden_size, dtype=torch.float64)
            b_o = torch.zeros(output_size, dtype=torch.float64)

        self.weights_input_hidden = nn.Parameter(w_ih, requires_grad=False)
        self.bias_hidden = nn.Parameter(b_h, requires_grad=False)
        self.weights_hidden_output = nn.Parameter(w_ho, requires_grad=False)
        self.bias_output = nn.Parameter(b_o, requires_grad=False)

    @property
    def shape(self) -> Tuple[int, int, int]:
        """(input_size, hidden_size, output_size)."""
        return (self.input_size, self.hidden_size, self.output_size)

    @property
    def num_genes(self) -> int:
        """Total number of evolvable scalars."""
        return sum(p.numel() for p in self.parameters())

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """Forward pass; accepts a single vector or a batch of rows."""
        hidden = torch.tanh(self.bias_hidden + x @ self.weights_input_hidden)
        return torch.tanh(self.bias_output + hidden @ self.weights_hidden_output)

    def infer(self, inputs: Sequence[float]) -> List[float]:
        """
        Evaluate the network on one sensor vector.

        Args:
            inputs: Sequence of length input_size.

        Returns:
            List of output_size floats, each in (-1, 1).

        Raises:
            DimensionMismatch: If inputs is not a vector of input_size values.
        """
        x = torch.as_tensor(inputs, dtype=torch.float64)
        if x.dim() != 1 or x.shape[0] != self.input_size:
            raise DimensionMismatch(
                f"Expected {self.input_size} inputs, got shape {tuple(x.shape)}"
            )
        with torch.no_grad():
            return self.forward(x).tolist()

    def genes(self) -> torch.Tensor:
        """Flatten every weight and bias into one detached vector."""
        return torch.cat([
            getattr(self, name).detach().flatten() for name in GENE_NAMES
        ])

    def gene_dict(self) -> Dict[str, torch.Tensor]:
        """Independent copies of each gene tensor, keyed by name."""
        return {name: getattr(self, name).detach().clone() for name in GENE_NAMES}

    def copy(self) -> 'PolicyNetwork':
        """
        Deep copy with independently owned storage.

        Mutating the copy never affects this network.
        """
        clone = PolicyNetwork(*self.shape, randomize=False)
        clone.load_state_dict(self.state_dict())
        return clone

    def crossover(
        self,
        other: 'PolicyNetwork',
        generator: Optional[torch.Generator] = None,
    ) -> 'PolicyNetwork':
        """
        Uniform crossover at the scalar gene level.

        Every weight and bias of the child is taken from this network with
        probability 0.5, otherwise from ``other``, independently per scalar.

        Args:
            other: Second parent, must have the same shape.
            generator: Random source for the selection masks.

        Returns:
            A new child network. Neither parent is modified.

        Raises:
            TypeError: If other is not a PolicyNetwork.
            DimensionMismatch: If the parents have different shapes.
        """
        if not isinstance(other, PolicyNetwork):
            raise TypeError(f"Cannot cross over with {type(other).__name__}")
        if self.shape != other.shape:
            raise DimensionMismatch(
                f"Parents must have identical shapes: {self.shape} vs {other.shape}"
            )

        child = PolicyNetwork(*self.shape, randomize=False)
        with torch.no_grad():
            for name in GENE_NAMES:
                gene_a = getattr(self, name)
                gene_b = getattr(other, name)
                mask = torch.rand(
                    gene_a.shape, generator=generator, dtype=torch.float64
                ) < 0.5
                getattr(child, name).copy_(torch.where(mask, gene_a, gene_b))
        return child

    def mutate(
        self,
        rate: float,
        strength: float,
        generator: Optional[torch.Generator] = None,
    ) -> None:
        """
        Perturb genes in place.

        Each scalar is independently selected with probability ``rate``
        and shifted by a value drawn uniformly from [-strength, strength].

        Args:
            rate: Per-gene mutation probability in [0, 1].
            strength: Maximum absolute perturbation.
            generator: Random source for selection and noise.
        """
        with torch.no_grad():
            for name in GENE_NAMES:
                gene = getattr(self, name)
                mask = torch.rand(
                    gene.shape, generator=generator, dtype=torch.float64
                ) < rate
                noise = _uniform(tuple(gene.shape), strength, generator)
                gene.copy_(torch.where(mask, gene + noise, gene))

    def extra_repr(self) -> str:
        return (
            f"input_size={self.input_size}, hidden_size={self.hidden_size}, "
            f"output_size={self.output_size}"
        )
