"""Data generators for synthesized column values."""

from graphseed.generators.base import BaseGenerator
from graphseed.generators.faker_generator import FakerGenerator
from graphseed.generators.sequence import UniqueSequence, default_sequence

__all__ = ["BaseGenerator", "FakerGenerator", "UniqueSequence", "default_sequence"]
