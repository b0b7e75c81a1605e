from scipy import constants

N_A = constants.Avogadro  # [1/mol]

k = constants.Boltzmann  # [J/K]

R_universal = constants.R  # [J/(mol K)] universal gas constant
