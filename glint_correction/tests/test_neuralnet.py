"""
Tests for the feed-forward network evaluator.
"""

import numpy as np
import pytest

from glint_correction.conventions import Convention
from glint_correction.exceptions import ConfigurationError, DimensionError, NetParseError
from glint_correction.neuralnet import NeuralNet, net_to_text


SIMPLE_NET = """\
problem: test net
trained on synthetic data
input  1 is sun_zenith in [0.0,2.0]
input  2 is log_rtosa_1 in [-1.0,1.0]
output  1 is log_rw_1 in [0.0,10.0]
$
#planes=3 2 2 1
bias 1 2
0.0 0.5
bias 2 1
0.25
wgt 0 2 2
1.0 0.0
0.0 1.0
wgt 1 2 1
1.0 -1.0
"""


def _with_header(header: str, body: str = "#planes=2 1 1\nbias 1 1\n0.0\nwgt 0 1 1\n1.0\n") -> str:
    return header + "\n$\n" + body


class TestParsing:
    """Tests for reading the network text format."""

    def test_simple_net(self):
        """Test dimensions, names and tables of a parsed net."""
        net = NeuralNet.from_text(SIMPLE_NET)
        assert net.input_count == 2
        assert net.output_count == 1
        assert net.plane_sizes == (2, 2, 1)
        assert net.input_names == ("sun_zenith", "log_rtosa_1")
        assert net.output_names == ("log_rw_1",)
        np.testing.assert_array_equal(net.in_min, [0.0, -1.0])
        np.testing.assert_array_equal(net.out_max, [10.0])
        assert net.activation == "sigmoid"

    def test_weight_rows_are_receiving_nodes(self):
        """Test that weight values are read row by row of the receiving plane."""
        net = NeuralNet.from_text(SIMPLE_NET)
        np.testing.assert_array_equal(net.weights[1], [[1.0, -1.0]])

    def test_activation_line(self):
        """Test that an activation line selects the activation."""
        text = SIMPLE_NET.replace("$\n", "activation: tanh\n$\n", 1)
        assert NeuralNet.from_text(text).activation == "tanh"

    def test_blocks_in_any_order(self):
        """Test that weight blocks may precede bias blocks."""
        body = "#planes=2 1 1\nwgt 0 1 1\n2.0\nbias 1 1\n0.5\n"
        header = "input 1 is a in [0,1]\noutput 1 is b in [0,1]\nactivation: linear"
        net = NeuralNet.from_text(_with_header(header, body))
        assert net.calc([1.0])[0] == pytest.approx(2.5)

    def test_text_round_trip(self):
        """Test that a rendered net parses to the same net."""
        net = NeuralNet.from_text(SIMPLE_NET)
        parsed = NeuralNet.from_text(net_to_text(net))
        for original, copy in zip(net.weights, parsed.weights):
            np.testing.assert_array_equal(original, copy)
        np.testing.assert_array_equal(net.in_max, parsed.in_max)
        assert parsed.activation == net.activation

    def test_load(self, tmp_path):
        """Test loading a net from a file."""
        path = tmp_path / "test.net"
        path.write_text(SIMPLE_NET)
        net = NeuralNet.load(path)
        assert net.plane_sizes == (2, 2, 1)


class TestParseErrors:
    """Tests for structurally inconsistent network text."""

    @pytest.mark.parametrize("text", [
        "input 1 is a in [0,1]\noutput 1 is b in [0,1]\n#planes=2 1 1\n",
        _with_header("input 1 is a in [0,1]\noutput 1 is b in [0,1]", ""),
        _with_header("input 1 is a in [0,1]\ninput 3 is c in [0,1]\noutput 1 is b in [0,1]"),
        _with_header("output 1 is b in [0,1]"),
        _with_header("input 1 is a in [0,1]\noutput 1 is b in [0,1]\nactivation: relu"),
        _with_header("input 1 is a in [2,1]\noutput 1 is b in [0,1]"),
        _with_header("input 1 is a in [0,1]\noutput 1 is b in [1,0]"),
        _with_header("input 1 is a in [0,1]\ninput 2 is c in [0,1]\noutput 1 is b in [0,1]"),
        _with_header("input 1 is a in [0,1]\noutput 1 is b in [0,1]",
                     "#planes=2 1 1\nbias 1 1\n0.0\nbias 1 1\n0.0\nwgt 0 1 1\n1.0\n"),
        _with_header("input 1 is a in [0,1]\noutput 1 is b in [0,1]", "#planes=2 1 1\nbias 1 1\n0.0\n"),
        _with_header("input 1 is a in [0,1]\noutput 1 is b in [0,1]",
                     "#planes=2 1 1\nbias 1 1\nabc\nwgt 0 1 1\n1.0\n"),
        _with_header("input 1 is a in [0,1]\noutput 1 is b in [0,1]",
                     "#planes=2 1 1\nbias 1 1\n0.0\nwgt 0 1 1\n"),
        _with_header("input 1 is a in [0,1]\noutput 1 is b in [0,1]",
                     "#planes=2 1 1\nbias 1 2\n0.0 0.0\nwgt 0 1 1\n1.0\n"),
    ], ids=[
        "no_separator", "no_planes", "gap_in_numbering", "no_inputs", "unknown_activation",
        "input_min_above_max", "output_min_above_max", "input_plane_mismatch",
        "duplicate_bias", "missing_weights", "non_numeric", "truncated_weights",
        "bias_size_mismatch",
    ])
    def test_invalid_text(self, text):
        """Test that structural problems raise NetParseError."""
        with pytest.raises(NetParseError):
            NeuralNet.from_text(text)

    def test_parse_error_is_configuration_error(self):
        """Test that parse errors are configuration errors and ValueErrors."""
        assert issubclass(NetParseError, ConfigurationError)
        assert issubclass(NetParseError, ValueError)


class TestCalc:
    """Tests for network evaluation."""

    def test_sigmoid_single_plane(self):
        """Test a one-node sigmoid net against the closed form."""
        header = "input 1 is a in [0,2]\noutput 1 is b in [0,1]"
        net = NeuralNet.from_text(_with_header(header))
        assert net.calc([1.0])[0] == pytest.approx(1.0 / (1.0 + np.exp(-0.5)))

    def test_two_planes(self):
        """Test propagation through a hidden plane and output scaling."""
        net = NeuralNet.from_text(SIMPLE_NET)
        hidden = 1.0 / (1.0 + np.exp(-np.array([0.5, 0.5 + 0.5])))
        expected = 10.0 / (1.0 + np.exp(-(hidden[0] - hidden[1] + 0.25)))
        assert net.calc([1.0, 0.0])[0] == pytest.approx(expected)

    def test_linear_identity(self, build_net):
        """Test that an identity net with equal tables reproduces its input."""
        net = build_net([np.eye(3)], [np.zeros(3)], [0, -1, 5], [1, 1, 10], [0, -1, 5], [1, 1, 10])
        np.testing.assert_allclose(net.calc([0.25, 0.5, 7.0]), [0.25, 0.5, 7.0])

    @pytest.mark.parametrize("convention", [Convention.LOG, Convention.LOG_PI])
    def test_log_encoded_identity(self, build_net, convention):
        """Test that encoding, an identity net and decoding return the reflectance."""
        reflectance = np.array([0.05, 0.02, 0.008, 0.001])
        low, high = [-10.0] * 4, [2.0] * 4
        net = build_net([np.eye(4)], [np.zeros(4)], low, high, low, high)
        decoded = convention.decode(net.calc(convention.encode(reflectance)))
        np.testing.assert_allclose(decoded, reflectance, rtol=1e-12)

    def test_extrapolation_allowed(self, build_net):
        """Test that inputs outside the table are evaluated, not rejected."""
        net = build_net([np.eye(1)], [np.zeros(1)], [0], [1], [0], [1])
        assert net.calc([3.0])[0] == pytest.approx(3.0)

    def test_wrong_length(self):
        """Test that a wrong input length raises DimensionError."""
        net = NeuralNet.from_text(SIMPLE_NET)
        with pytest.raises(DimensionError):
            net.calc([1.0, 2.0, 3.0])

    def test_tables_read_only(self):
        """Test that the tables cannot be modified after loading."""
        net = NeuralNet.from_text(SIMPLE_NET)
        with pytest.raises(ValueError):
            net.in_min[0] = 5.0
        with pytest.raises(ValueError):
            net.weights[0][0, 0] = 5.0


class TestInputsInRange:
    """Tests for the input range check."""

    def test_inside_and_on_bounds(self):
        """Test values inside the range and on its bounds."""
        net = NeuralNet.from_text(SIMPLE_NET)
        assert net.inputs_in_range([0.0, 1.0])
        assert net.inputs_in_range([2.0, -1.0])

    def test_outside(self):
        """Test values outside the range."""
        net = NeuralNet.from_text(SIMPLE_NET)
        assert not net.inputs_in_range([2.1, 0.0])

    def test_nan_out_of_range(self):
        """Test that NaN counts as out of range."""
        net = NeuralNet.from_text(SIMPLE_NET)
        assert not net.inputs_in_range([1.0, np.nan])

    def test_offset(self):
        """Test checking a slice of the inputs."""
        net = NeuralNet.from_text(SIMPLE_NET)
        assert net.inputs_in_range([-0.5], offset=1)
        assert not net.inputs_in_range([1.5], offset=1)

    def test_overflow(self):
        """Test that checking past the last input raises DimensionError."""
        net = NeuralNet.from_text(SIMPLE_NET)
        with pytest.raises(DimensionError):
            net.inputs_in_range([0.0, 0.0], offset=1)
