"""Aggregate stores, aggregate bases, event sources and snapshot strategies."""