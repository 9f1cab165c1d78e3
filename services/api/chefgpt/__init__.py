"""ChefGPT API: recipe, meal-plan and calorie generation backed by a nutrition calculator."""

__version__ = "0.1.0"
