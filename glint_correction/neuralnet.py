"""
Feed-forward back-propagation neural networks.

The atmospheric correction is carried by networks trained off-line on
radiative transfer simulations. A trained network is shipped as a text
file (".net") with three parts:

- a free-form header, including one line per input and output giving its
  name and the min/max range used to scale it,
- an optional ``activation:`` line,
- after a line holding ``$``, the plane sizes (``#planes=``) followed by
  ``bias`` and ``wgt`` blocks.

Example
-------
::

    problem: atmospheric correction
    input  1 is sun_zenith in [0.000000,80.000000]
    input  2 is log_rtosa_1 in [-6.000000,0.000000]
    output  1 is log_rw_1 in [-12.000000,0.000000]
    $
    #planes=3 2 4 1
    bias 1 4
    0.1 0.2 0.3 0.4
    bias 2 1
    0.5
    wgt 0 2 4
    ...8 values, one row of 2 per hidden node...
    wgt 1 4 1
    ...4 values...

Evaluation scales every input into [0, 1] with its min/max, propagates
``activation(W x + b)`` through the planes and rescales the last plane
into the output min/max. The evaluator does not enforce the input ranges;
callers compare inputs against ``in_min``/``in_max`` and flag the pixel.

References
----------
.. [1] Schiller, H. and Doerffer, R. (1999). Neural network for emulation
       of an inverse model - operational derivation of Case II water
       properties from MERIS data. Int. J. Remote Sensing, 20:1735-1746.
"""

import logging
import re
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
import smart_open

from glint_correction.exceptions import DimensionError, NetParseError

logger = logging.getLogger(__name__)


def _sigmoid(x: np.ndarray) -> np.ndarray:
    return 1.0 / (1.0 + np.exp(-x))


#: Activation functions by name
ACTIVATIONS: Dict[str, Callable[[np.ndarray], np.ndarray]] = {
    "sigmoid": _sigmoid,
    "tanh": np.tanh,
    "linear": lambda x: x,
}

DEFAULT_ACTIVATION = "sigmoid"

_RANGE_LINE = re.compile(
    r"^\s*(input|output)\s+(\d+)\s+is\s+(\S+)\s+in\s+\[\s*([^,\]]+?)\s*,\s*([^\]]+?)\s*\]"
)
_ACTIVATION_LINE = re.compile(r"^\s*activation\s*[:=]\s*(\w+)\s*$", re.IGNORECASE)
_PLANES = re.compile(r"^#planes\s*=\s*(.*)$")


def _read_only(values: Sequence[float]) -> np.ndarray:
    array = np.array(values, dtype=float)
    array.setflags(write=False)
    return array


def _parse_ranges(
    entries: Dict[int, Tuple[str, float, float]],
    kind: str,
) -> Tuple[Tuple[str, ...], List[float], List[float]]:
    """Order the header range entries and check their numbering."""
    if not entries:
        raise NetParseError(f"Network definition has no {kind} ranges")
    numbers = sorted(entries)
    if numbers != list(range(1, len(numbers) + 1)):
        raise NetParseError(f"{kind.capitalize()} numbering is not consecutive from 1: {numbers}")
    names, minima, maxima = [], [], []
    for number in numbers:
        name, low, high = entries[number]
        names.append(name)
        minima.append(low)
        maxima.append(high)
    return tuple(names), minima, maxima


class NeuralNet:
    """
    A trained feed-forward network with its normalization tables.

    Instances are read-only once created and can be shared between any
    number of concurrent pixel evaluations.

    Parameters
    ----------
    weights : sequence of array_like
        One matrix per plane transition, shape (n_out, n_in).
    biases : sequence of array_like
        One vector per plane transition, length n_out.
    in_min, in_max : array_like
        Input scaling table.
    out_min, out_max : array_like
        Output scaling table.
    activation : str, optional
        Name of the activation function. Default is 'sigmoid'.
    input_names, output_names : sequence of str, optional
        Names from the network header.

    Raises
    ------
    NetParseError
        If the tables and layer dimensions are inconsistent.
    """

    def __init__(
        self,
        weights: Sequence[np.ndarray],
        biases: Sequence[np.ndarray],
        in_min: Sequence[float],
        in_max: Sequence[float],
        out_min: Sequence[float],
        out_max: Sequence[float],
        activation: str = DEFAULT_ACTIVATION,
        input_names: Optional[Sequence[str]] = None,
        output_names: Optional[Sequence[str]] = None,
    ):
        if activation not in ACTIVATIONS:
            raise NetParseError(
                f"Unknown activation '{activation}'. Supported: {sorted(ACTIVATIONS)}"
            )
        if len(weights) == 0 or len(weights) != len(biases):
            raise NetParseError(
                f"Need one bias per weight matrix, got {len(weights)} weights "
                f"and {len(biases)} biases"
            )

        self.weights = tuple(_read_only(w) for w in weights)
        self.biases = tuple(_read_only(b) for b in biases)
        self.in_min = _read_only(in_min)
        self.in_max = _read_only(in_max)
        self.out_min = _read_only(out_min)
        self.out_max = _read_only(out_max)
        self.activation = activation
        self._activate = ACTIVATIONS[activation]

        n_in = len(self.in_min)
        for plane, (w, b) in enumerate(zip(self.weights, self.biases)):
            if w.ndim != 2 or w.shape != (len(b), n_in):
                raise NetParseError(
                    f"Weight matrix {plane} has shape {w.shape}, expected ({len(b)}, {n_in})"
                )
            n_in = len(b)
        if len(self.in_max) != len(self.in_min):
            raise NetParseError("Input min and max tables differ in length")
        bad = np.flatnonzero(~(self.in_min < self.in_max))
        if bad.size:
            raise NetParseError(f"Input ranges need min < max, violated at inputs {(bad + 1).tolist()}")
        if len(self.out_min) != n_in or len(self.out_max) != n_in:
            raise NetParseError(
                f"Output tables have {len(self.out_min)}/{len(self.out_max)} entries, "
                f"last plane has {n_in} nodes"
            )
        bad = np.flatnonzero(~(self.out_min <= self.out_max))
        if bad.size:
            raise NetParseError(f"Output ranges need min <= max, violated at outputs {(bad + 1).tolist()}")

        self.input_names = tuple(input_names) if input_names else ()
        self.output_names = tuple(output_names) if output_names else ()

    @property
    def input_count(self) -> int:
        """Number of network inputs."""
        return len(self.in_min)

    @property
    def output_count(self) -> int:
        """Number of network outputs."""
        return len(self.out_min)

    @property
    def plane_sizes(self) -> Tuple[int, ...]:
        """Number of nodes in each plane, input and output included."""
        return (self.input_count,) + tuple(len(b) for b in self.biases)

    def calc(self, values: Sequence[float]) -> np.ndarray:
        """
        Evaluate the network.

        Parameters
        ----------
        values : array_like
            Input vector in physical (unscaled) units.

        Returns
        -------
        ndarray
            Output vector in physical units.

        Raises
        ------
        DimensionError
            If the input length differs from ``input_count``.
        """
        x = np.asarray(values, dtype=float)
        if x.shape != (self.input_count,):
            raise DimensionError(
                f"Network expects {self.input_count} inputs, got {x.size}"
            )

        nodes = (x - self.in_min) / (self.in_max - self.in_min)
        for w, b in zip(self.weights, self.biases):
            nodes = self._activate(w @ nodes + b)
        return nodes * (self.out_max - self.out_min) + self.out_min

    def inputs_in_range(self, values: Sequence[float], offset: int = 0) -> bool:
        """
        Check input values against the input scaling table.

        Parameters
        ----------
        values : array_like
            Values to check, in input order.
        offset : int, optional
            Input index of the first value. Default is 0.

        Returns
        -------
        bool
            True if every value lies within [min, max]. NaN is out of range.
        """
        v = np.asarray(values, dtype=float)
        low = self.in_min[offset:offset + v.size]
        high = self.in_max[offset:offset + v.size]
        if low.size != v.size:
            raise DimensionError(
                f"Cannot check {v.size} values from input {offset}, "
                f"network has {self.input_count} inputs"
            )
        return bool(np.all((v >= low) & (v <= high)))

    def __repr__(self) -> str:
        sizes = "x".join(str(s) for s in self.plane_sizes)
        return f"NeuralNet({sizes}, activation='{self.activation}')"

    @classmethod
    def from_text(cls, text: str) -> "NeuralNet":
        """
        Parse a network from its textual definition.

        Parameters
        ----------
        text : str
            Content of a ".net" file.

        Returns
        -------
        NeuralNet
            The parsed network.

        Raises
        ------
        NetParseError
            If the definition is structurally inconsistent.
        """
        lines = text.splitlines()
        try:
            separator = next(i for i, line in enumerate(lines) if line.strip() == "$")
        except StopIteration:
            raise NetParseError("Network definition has no '$' section separator") from None

        inputs: Dict[int, Tuple[str, float, float]] = {}
        outputs: Dict[int, Tuple[str, float, float]] = {}
        activation = DEFAULT_ACTIVATION
        for line in lines[:separator]:
            match = _RANGE_LINE.match(line)
            if match:
                kind, number, name, low, high = match.groups()
                target = inputs if kind == "input" else outputs
                if int(number) in target:
                    raise NetParseError(f"Duplicate {kind} {number}")
                try:
                    target[int(number)] = (name, float(low), float(high))
                except ValueError:
                    raise NetParseError(f"Cannot parse range of {kind} {number}: {line!r}") from None
                continue
            match = _ACTIVATION_LINE.match(line)
            if match:
                activation = match.group(1).lower()

        input_names, in_min, in_max = _parse_ranges(inputs, "input")
        output_names, out_min, out_max = _parse_ranges(outputs, "output")

        sizes, biases, weights = cls._parse_body(lines[separator + 1:])
        if sizes[0] != len(in_min):
            raise NetParseError(f"Input plane has {sizes[0]} nodes, header lists {len(in_min)} inputs")
        if sizes[-1] != len(out_min):
            raise NetParseError(f"Output plane has {sizes[-1]} nodes, header lists {len(out_min)} outputs")

        return cls(
            weights=weights,
            biases=biases,
            in_min=in_min,
            in_max=in_max,
            out_min=out_min,
            out_max=out_max,
            activation=activation,
            input_names=input_names,
            output_names=output_names,
        )

    @staticmethod
    def _parse_body(lines: Sequence[str]) -> Tuple[List[int], List[np.ndarray], List[np.ndarray]]:
        """Read plane sizes, bias and weight blocks after the separator."""
        body = [line.strip() for line in lines if line.strip()]
        if not body:
            raise NetParseError("Network definition has no '#planes=' line")
        match = _PLANES.match(body[0])
        if match is None:
            raise NetParseError(f"Expected '#planes=' after '$', got {body[0]!r}")
        try:
            counts = [int(token) for token in match.group(1).split()]
        except ValueError:
            raise NetParseError(f"Cannot parse plane sizes: {body[0]!r}") from None
        if len(counts) < 3 or counts[0] != len(counts) - 1 or min(counts[1:]) < 1:
            raise NetParseError(f"Invalid plane description: {body[0]!r}")
        sizes = counts[1:]
        n_transitions = len(sizes) - 1

        tokens = " ".join(body[1:]).split()
        biases: Dict[int, np.ndarray] = {}
        weights: Dict[int, np.ndarray] = {}
        position = 0

        def take(count: int, what: str) -> np.ndarray:
            nonlocal position
            chunk = tokens[position:position + count]
            if len(chunk) != count:
                raise NetParseError(f"{what} expects {count} values, found {len(chunk)}")
            try:
                values = np.array([float(token) for token in chunk])
            except ValueError:
                raise NetParseError(f"Non-numeric value in {what}") from None
            position += count
            return values

        while position < len(tokens):
            keyword = tokens[position]
            if keyword == "bias":
                header = _take_ints(tokens, position + 1, 2, keyword)
                position += 3
                plane, n_out = header
                if not 1 <= plane <= n_transitions or n_out != sizes[plane]:
                    raise NetParseError(f"bias {plane} {n_out} does not match planes {sizes}")
                if plane in biases:
                    raise NetParseError(f"Duplicate bias block {plane}")
                biases[plane] = take(n_out, f"bias {plane}")
            elif keyword == "wgt":
                header = _take_ints(tokens, position + 1, 3, keyword)
                position += 4
                plane, n_in, n_out = header
                if (not 0 <= plane < n_transitions
                        or n_in != sizes[plane] or n_out != sizes[plane + 1]):
                    raise NetParseError(f"wgt {plane} {n_in} {n_out} does not match planes {sizes}")
                if plane in weights:
                    raise NetParseError(f"Duplicate weight block {plane}")
                weights[plane] = take(n_in * n_out, f"wgt {plane}").reshape(n_out, n_in)
            else:
                raise NetParseError(f"Unexpected token {keyword!r} in network body")

        missing_bias = [p for p in range(1, n_transitions + 1) if p not in biases]
        missing_wgt = [p for p in range(n_transitions) if p not in weights]
        if missing_bias or missing_wgt:
            raise NetParseError(
                f"Missing blocks: bias {missing_bias}, wgt {missing_wgt}"
            )
        return (
            sizes,
            [biases[p] for p in range(1, n_transitions + 1)],
            [weights[p] for p in range(n_transitions)],
        )

    @classmethod
    def load(cls, path: str) -> "NeuralNet":
        """
        Load a network from a local path or a remote URI.

        Parameters
        ----------
        path : str or path-like
            Location of the ".net" file. Anything accepted by
            ``smart_open.open`` (local path, file://, s3://, http(s)://).

        Returns
        -------
        NeuralNet
            The parsed network.
        """
        with smart_open.open(str(path), "r") as stream:
            net = cls.from_text(stream.read())
        logger.info("Loaded neural net %s: %s", path, net)
        return net


def _take_ints(tokens: Sequence[str], start: int, count: int, keyword: str) -> List[int]:
    """Read the integer header of a bias or wgt block."""
    chunk = tokens[start:start + count]
    if len(chunk) != count:
        raise NetParseError(f"Incomplete '{keyword}' block header")
    try:
        return [int(token) for token in chunk]
    except ValueError:
        raise NetParseError(f"Cannot parse '{keyword}' block header: {' '.join(chunk)}") from None


def net_to_text(net: NeuralNet, header: str = "") -> str:
    """
    Render a network in the textual ".net" format.

    Parameters
    ----------
    net : NeuralNet
        The network to render.
    header : str, optional
        Free-form lines written before the range table.

    Returns
    -------
    str
        Text accepted by :meth:`NeuralNet.from_text`.
    """
    lines = [header] if header else []
    for i in range(net.input_count):
        name = net.input_names[i] if net.input_names else f"in_{i + 1}"
        lines.append(f"input {i + 1:2d} is {name} in [{float(net.in_min[i])!r},{float(net.in_max[i])!r}]")
    for i in range(net.output_count):
        name = net.output_names[i] if net.output_names else f"out_{i + 1}"
        lines.append(f"output {i + 1:2d} is {name} in [{float(net.out_min[i])!r},{float(net.out_max[i])!r}]")
    lines.append(f"activation: {net.activation}")
    lines.append("$")
    sizes = net.plane_sizes
    lines.append(f"#planes={len(sizes)} " + " ".join(str(s) for s in sizes))
    for plane, b in enumerate(net.biases, start=1):
        lines.append(f"bias {plane} {b.size}")
        lines.append(" ".join(repr(float(v)) for v in b))
    for plane, w in enumerate(net.weights):
        lines.append(f"wgt {plane} {w.shape[1]} {w.shape[0]}")
        for row in w:
            lines.append(" ".join(repr(float(v)) for v in row))
    return "\n".join(lines) + "\n"
