from .params import GIFParams, ConfigurationError, apply_updates, load_params
from .calibration import Propagators, CalibrationError, calibrate, propagator_32
from .synapses import InputBuffer
from .neuron_gif import GIFNeuron, GIFState, RECORDABLES, firing_intensity, spike_probability
from .network import Simulation, firing_stats
