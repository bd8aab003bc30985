"""Service definitions assembled from generated Go code and proto HTTP options."""