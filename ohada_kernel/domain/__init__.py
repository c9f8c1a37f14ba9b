"""Pure domain layer: values, DTOs, clock and OHADA rule functions. No I/O."""
