"""
Evolution Engine Exception Classes

This module defines custom exceptions for the evolutionary computation engine.
These exceptions provide clear error messages and handling guidance for the
configuration, numeric and contract errors that may occur during a run.
"""

from typing import Optional


class EvolutionError(Exception):
    """Base exception class for all evolution-related errors."""
    
    def __init__(self, message: str, suggestion: Optional[str] = None):
        self.message = message
        self.suggestion = suggestion
        super().__init__(self._format_message())
    
    def _format_message(self) -> str:
        if self.suggestion:
            return f"{self.message}. Suggestion: {self.suggestion}"
        return self.message


# =============================================================================
# Invalid Configuration Errors
# =============================================================================

class ConfigurationError(EvolutionError):
    """
    Raised when a component or algorithm is configured with invalid values.
    
    Configuration errors are detected before a run starts; they abort
    initialization without touching the environment.
    """


class InvalidPopulationSizeError(ConfigurationError):
    """Raised when population_size is smaller than one entity."""
    
    MIN_SIZE = 1
    
    def __init__(self, population_size: int):
        self.population_size = population_size
        message = f"Invalid population size: {population_size}"
        suggestion = f"Population size must be at least {self.MIN_SIZE}"
        super().__init__(message, suggestion)


class InvalidEnvironmentSizeError(ConfigurationError):
    """Raised when the number of populations in the environment is below one."""
    
    MIN_SIZE = 1
    
    def __init__(self, environment_size: int):
        self.environment_size = environment_size
        message = f"Invalid environment size: {environment_size}"
        suggestion = f"Environment size must be at least {self.MIN_SIZE}"
        super().__init__(message, suggestion)


class InvalidRateError(ConfigurationError):
    """
    Raised when a probability-like setting is outside [0, 1].
    
    Shared by the elitist ratio, the crossover rate and the mutation rate.
    """
    
    MIN_RATE = 0.0
    MAX_RATE = 1.0
    
    def __init__(self, rate_name: str, rate: float):
        self.rate_name = rate_name
        self.rate = rate
        message = f"Invalid {rate_name}: {rate}"
        suggestion = f"{rate_name} must be between {self.MIN_RATE} and {self.MAX_RATE}"
        super().__init__(message, suggestion)


class InvalidReplacementValueError(ConfigurationError):
    """Raised when a population replacement value is negative or above 100%."""
    
    def __init__(self, value: int, kind_name: str):
        self.value = value
        self.kind_name = kind_name
        message = f"Invalid population replacement value: {value} ({kind_name})"
        suggestion = (
            "Use a non-negative fixed count, or a percentage between 0 and 100"
        )
        super().__init__(message, suggestion)


class InvalidMigrantCountError(ConfigurationError):
    """
    Raised when the multi-deme migrant count is negative or exceeds the
    population size.
    """
    
    def __init__(self, migrant_count: int, population_size: int):
        self.migrant_count = migrant_count
        self.population_size = population_size
        message = (
            f"Invalid migrant count: {migrant_count} "
            f"for population size {population_size}"
        )
        suggestion = (
            f"Migrant count must be between 0 and {population_size}"
        )
        super().__init__(message, suggestion)


class InvalidMigrationIntervalError(ConfigurationError):
    """Raised when migrate_each_generation is smaller than one."""
    
    def __init__(self, interval: int):
        self.interval = interval
        message = f"Invalid migration interval: {interval}"
        suggestion = "Migration interval must be at least 1 generation"
        super().__init__(message, suggestion)


class InvalidStartingLengthError(ConfigurationError):
    """Raised when a list entity's starting length range is empty or inverted."""
    
    def __init__(self, minimum_length: int, maximum_length: int):
        self.minimum_length = minimum_length
        self.maximum_length = maximum_length
        message = (
            f"Invalid starting length range: minimum ({minimum_length}) "
            f"must be at least 1 and not greater than maximum ({maximum_length})"
        )
        suggestion = "Swap the values or raise the maximum starting length"
        super().__init__(message, suggestion)


class InvalidTemperatureError(ConfigurationError):
    """Raised when a Boltzmann temperature or annealing setting is not positive."""
    
    def __init__(self, setting_name: str, value: float):
        self.setting_name = setting_name
        self.value = value
        message = f"Invalid {setting_name}: {value}"
        suggestion = f"{setting_name} must be greater than 0"
        super().__init__(message, suggestion)


class MissingOperatorError(ConfigurationError):
    """Raised when a required operator (selection, fitness evaluator) is absent."""
    
    def __init__(self, operator_name: str):
        self.operator_name = operator_name
        message = f"Missing required operator: {operator_name}"
        suggestion = f"Provide a {operator_name} in AlgorithmOperators"
        super().__init__(message, suggestion)


class IncompatibleComponentError(ConfigurationError):
    """Raised when a component requires a different kind of collaborator."""
    
    def __init__(self, component_name: str, required_type: str, configured_type: str):
        self.component_name = component_name
        self.required_type = required_type
        self.configured_type = configured_type
        message = (
            f"{component_name} requires {required_type}, "
            f"but {configured_type} is configured"
        )
        super().__init__(message)


# =============================================================================
# Runtime Errors
# =============================================================================

class BoltzmannOverflowError(EvolutionError, OverflowError):
    """
    Raised when the sum of Boltzmann exponentials exceeds the float range.
    
    The run aborts; lower the fitness magnitude or raise the temperature.
    """
    
    def __init__(self, temperature: float, fitness_value: float):
        self.temperature = temperature
        self.fitness_value = fitness_value
        message = (
            f"Boltzmann selection overflow: exp(fitness / temperature) "
            f"exceeded the representable range (fitness={fitness_value}, "
            f"temperature={temperature})"
        )
        suggestion = "Increase the temperature or scale fitness values down"
        super().__init__(message, suggestion)


class EmptyPopulationError(EvolutionError, ValueError):
    """Raised when aggregate statistics are requested for an empty population."""
    
    def __init__(self, population_index: int):
        self.population_index = population_index
        message = f"Population {population_index} has no entities"
        super().__init__(message)


class FitnessScalingError(EvolutionError, ValueError):
    """Raised when a raw fitness value cannot be scaled to a real number."""
    
    def __init__(self, raw_fitness: float, scaling_power: float):
        self.raw_fitness = raw_fitness
        self.scaling_power = scaling_power
        message = (
            f"Cannot raise negative fitness {raw_fitness} to fractional power {scaling_power}"
        )
        suggestion = "Use an integer scaling power or keep raw fitness non-negative"
        super().__init__(message, suggestion)


class AlgorithmNotInitializedError(EvolutionError):
    """Raised when a generation is requested before initialize() has run."""
    
    def __init__(self):
        message = "The algorithm has not been initialized"
        suggestion = "Call initialize() before step() or run()"
        super().__init__(message, suggestion)


class InvalidStateTransitionError(EvolutionError):
    """Raised when a controller operation is not allowed in the current state."""
    
    def __init__(self, operation: str, state_name: str):
        self.operation = operation
        self.state_name = state_name
        message = f"Cannot {operation} while execution state is {state_name}"
        super().__init__(message)


# =============================================================================
# Utility Functions
# =============================================================================

def validate_population_size(size: int) -> None:
    """Validate population size is within allowed range."""
    if size < InvalidPopulationSizeError.MIN_SIZE:
        raise InvalidPopulationSizeError(size)


def validate_environment_size(size: int) -> None:
    """Validate the number of populations."""
    if size < InvalidEnvironmentSizeError.MIN_SIZE:
        raise InvalidEnvironmentSizeError(size)


def validate_rate(rate_name: str, rate: float) -> None:
    """Validate a probability-like rate is within [0, 1]."""
    if not InvalidRateError.MIN_RATE <= rate <= InvalidRateError.MAX_RATE:
        raise InvalidRateError(rate_name, rate)


def validate_migration(migrant_count: int, interval: int, population_size: int) -> None:
    """Validate multi-deme migration settings against the population size."""
    if interval < 1:
        raise InvalidMigrationIntervalError(interval)
    if migrant_count < 0 or migrant_count > population_size:
        raise InvalidMigrantCountError(migrant_count, population_size)


def validate_starting_length(minimum_length: int, maximum_length: int) -> None:
    """Validate that 1 <= minimum_length <= maximum_length."""
    if minimum_length < 1 or minimum_length > maximum_length:
        raise InvalidStartingLengthError(minimum_length, maximum_length)


def validate_positive(setting_name: str, value: float) -> None:
    """Validate that a temperature-like setting is strictly positive."""
    if not value > 0:
        raise InvalidTemperatureError(setting_name, value)
