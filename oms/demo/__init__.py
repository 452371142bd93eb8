from oms.demo.seed import seed_demo_shop

__all__ = ["seed_demo_shop"]
