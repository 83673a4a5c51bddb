"""Engram — spreading-activation diffusion over a static semantic graph."""
from .simulator import EngramSimulator, PropagationTask, Transfer
from .graph import GraphStore, GraphConfigError, Node, build_engram_graph
from .ledger import ActivationLedger
from .pulses import Pulse, PulseScheduler
from .scheduler import TaskScheduler, RealtimeDriver
