class Coffee:
    def cost(self) -> float:
        return 2.0


class SimpleCoffee(Coffee):
    def cost(self) -> float:
        return 2.5


class CoffeeDecorator(Coffee):
    def __init__(self, wrapped: Coffee) -> None:
        self._wrapped = wrapped

    def cost(self) -> float:
        return self._wrapped.cost()


class MilkDecorator(CoffeeDecorator):
    def cost(self) -> float:
        return super().cost() + self._milk_price()

    def _milk_price(self) -> float:
        return 0.5
