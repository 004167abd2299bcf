"""Model components: synaptic kinetics and neuron models."""
