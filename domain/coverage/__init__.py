"""Coverage Bounded Context.

Responsible for the synthetic signal field:
- Value Objects: Emitter, SignalField, EmitterDistance
- Services: signal_strength, signal_to_color, rank_emitters
"""
